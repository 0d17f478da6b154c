"""
Resource identifier (ARN) parsing and display helpers.

    arn:<partition>:<service>:<region>:<account>:<resource>

The resource part may itself contain ':' or '/' separators, e.g.
``function:orders:prod`` or ``table/Orders/stream/2024-01-01``.
"""

import re
from dataclasses import dataclass
from typing import Optional

from lambdamap.compiler.types import Node, UNKNOWN_SERVICE

ARN_PREFIX = "arn:"

SERVICE_NAME_MAP = {
    "lambda": "Lambda",
    "s3": "S3",
    "dynamodb": "DynamoDB",
    "sqs": "SQS",
    "sns": "SNS",
    "events": "EventBridge",
    "eventbridge": "EventBridge",
    "states": "StepFunctions",
    "logs": "CloudWatch",
    "cloudwatch": "CloudWatch",
    "cloudwatchevents": "CloudWatchEvents",
    "cloudtrail": "CloudTrail",
    "ec2": "EC2",
    "elasticloadbalancing": "ELB",
    "elasticfilesystem": "EFS",
    "kms": "KMS",
    "iam": "IAM",
    "rds": "RDS",
    "secretsmanager": "SecretsManager",
    "ssm": "SSM",
    "ssmmessages": "SSM",
    "servicediscovery": "CloudMap",
    "kinesis": "Kinesis",
    "apigateway": "APIGateway",
    "executeapi": "APIGateway",
}

_SEGMENT_SPLIT = re.compile(r"[/:]")

# arn:partition:lambda:region:account:function:name
UNQUALIFIED_FUNCTION_SEGMENTS = 7


@dataclass(frozen=True)
class ResourceIdentifier:
    raw: str
    partition: str
    service: str
    region: str
    account_id: str
    resource: str
    resource_type: str
    resource_id: str


def normalize_service(raw_service: Optional[str]) -> str:
    if not raw_service:
        return UNKNOWN_SERVICE
    key = re.sub(r"[^a-zA-Z0-9]", "", raw_service).lower()
    if key in SERVICE_NAME_MAP:
        return SERVICE_NAME_MAP[key]
    return raw_service[0].upper() + raw_service[1:]


def parse_arn(value) -> Optional[ResourceIdentifier]:
    if not isinstance(value, str) or not value.startswith(ARN_PREFIX):
        return None

    parts = value.split(":")
    if len(parts) < 6:
        return None

    _, partition, service, region, account_id = parts[:5]
    resource = ":".join(parts[5:])
    resource_type = ""
    resource_id = resource

    for separator in ("/", ":"):
        if separator in resource:
            segments = resource.split(separator)
            resource_type = segments[0]
            resource_id = segments[-1]
            break

    if not resource_id:
        resource_id = resource

    return ResourceIdentifier(
        raw=value,
        partition=partition,
        service=service,
        region=region,
        account_id=account_id,
        resource=resource,
        resource_type=resource_type,
        resource_id=resource_id,
    )


def describe_arn(value: str) -> Node:
    """Build a display node (label + service tag) for an identifier."""
    parsed = parse_arn(value)
    if parsed is None:
        return Node(id=value, label=value, service=UNKNOWN_SERVICE)

    service = normalize_service(parsed.service)

    if service == "S3" and parsed.resource:
        return Node(id=value, label=parsed.resource.lstrip("/"), service=service)

    label = parsed.resource_id or parsed.resource
    if not label or label == parsed.resource:
        segments = [s for s in _SEGMENT_SPLIT.split(parsed.resource) if s]
        label = segments[-1] if segments else parsed.resource

    return Node(id=value, label=label, service=service)


def unqualified_function_arn(value: str) -> str:
    """
    Strip a version/alias qualifier from a Lambda function ARN.
    Anything that is not a qualified function ARN is returned unchanged.
    """
    parsed = parse_arn(value)
    if parsed is None or parsed.service != "lambda":
        return value
    parts = value.split(":")
    if len(parts) > UNQUALIFIED_FUNCTION_SEGMENTS and parts[5] == "function":
        return ":".join(parts[:UNQUALIFIED_FUNCTION_SEGMENTS])
    return value


def build_arn(partition: str, service: str, region: str, account_id: str, resource: str) -> str:
    return f"arn:{partition}:{service}:{region}:{account_id}:{resource}"
