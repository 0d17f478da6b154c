# backend/lambdamap/analysis/patterns.py
"""
Pattern Catalog - static detection rules for deployment package scanning

INVOCATION_PATTERNS find references to other Lambda functions.
SERVICE_PATTERNS map a service tag to alternative regexes, one per client
library idiom (JS SDK v2/v3, boto3, Java SDK, raw identifiers).

Rules whose resource_kind is None are weak signals: they only prove the
service client is present. Rules with a kind capture the resource in the
"value" group, else group 1, else the whole match.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

# Resource kinds
ARN = "arn"
QUEUE_URL = "queueUrl"
BUCKET = "bucket"
TABLE = "table"
TOPIC_NAME = "topicName"
EVENT_BUS = "eventBus"
STREAM = "stream"
SECRET = "secret"
PARAMETER = "parameter"
STATE_MACHINE = "stateMachine"

_PARTITION = r"aws[a-z-]*"
_REGION = r"[a-z]{2}(?:-[a-z]+)+-\d"
_ACCOUNT = r"\d{12}"
_Q = r"""['"`]"""


@dataclass(frozen=True)
class PatternRule:
    pattern: re.Pattern
    resource_kind: Optional[str] = None

    def capture(self, match: re.Match) -> Optional[str]:
        if self.resource_kind is None:
            return None
        if "value" in match.re.groupindex:
            return match.group("value")
        return match.group(1) if match.re.groups else match.group(0)


def _rule(regex: str, kind: Optional[str] = None, flags: int = 0) -> PatternRule:
    return PatternRule(re.compile(regex, flags), kind)


def _client_rules(*regexes: str) -> Tuple[PatternRule, ...]:
    return tuple(_rule(r) for r in regexes)


# ============================================================
# FUNCTION INVOCATION
# ============================================================

LAMBDA_ARN_RULE = _rule(
    rf"arn:{_PARTITION}:lambda:{_REGION}:{_ACCOUNT}:function:[A-Za-z0-9_-]+(?::[A-Za-z0-9_$-]+)?",
    ARN,
)

FUNCTION_NAME_RULE = _rule(
    rf"""\bFunctionName\s*[:=]\s*(?P<q>{_Q})(?P<value>[^'"`\n]+)(?P=q)""",
    "functionName",
)

INVOKE_CALL_RULE = _rule(
    rf"""\b(?:invoke|invokeAsync|invoke_async|invokeFunction)\s*\(\s*(?P<q>{_Q})(?P<value>[^'"`\n]+)(?P=q)""",
    "functionName",
)

INVOCATION_PATTERNS: Tuple[PatternRule, ...] = (
    LAMBDA_ARN_RULE,
    FUNCTION_NAME_RULE,
    INVOKE_CALL_RULE,
)


# ============================================================
# SERVICE USAGE
# ============================================================

SQS_PATTERNS = (
    _rule(rf"https://sqs\.{_REGION}\.amazonaws\.com(?:\.cn)?/{_ACCOUNT}/[A-Za-z0-9_.-]+", QUEUE_URL),
    _rule(rf"arn:{_PARTITION}:sqs:{_REGION}:{_ACCOUNT}:[A-Za-z0-9_.-]+", ARN),
    _rule(rf"""\bQueueUrl\s*[:=]\s*{_Q}(https?://[^'"`\s]+){_Q}""", QUEUE_URL),
) + _client_rules(
    r"\bSQSClient\b",
    r"\bAWS\.SQS\b",
    r"@aws-sdk/client-sqs",
    r"""boto3\.(?:client|resource)\(\s*['"]sqs['"]""",
    r"\bSqsClient\b",
)

SNS_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:sns:{_REGION}:{_ACCOUNT}:[A-Za-z0-9_.-]+", ARN),
    _rule(rf"""\bTopicName\s*[:=]\s*{_Q}([A-Za-z0-9_-]+){_Q}""", TOPIC_NAME),
) + _client_rules(
    r"\bSNSClient\b",
    r"\bAWS\.SNS\b",
    r"@aws-sdk/client-sns",
    r"""boto3\.(?:client|resource)\(\s*['"]sns['"]""",
    r"\bSnsClient\b",
)

S3_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:s3:::[a-z0-9][a-z0-9.-]+", ARN),
    _rule(r"s3://([a-z0-9][a-z0-9.-]{1,61}[a-z0-9])", BUCKET),
    _rule(rf"""\bBucket\s*[:=]\s*{_Q}([a-z0-9][a-z0-9.-]{{1,61}}[a-z0-9]){_Q}""", BUCKET),
    _rule(r"""\.Bucket\(\s*['"]([a-z0-9][a-z0-9.-]{1,61}[a-z0-9])['"]""", BUCKET),
) + _client_rules(
    r"\bS3Client\b",
    r"\bAWS\.S3\b",
    r"@aws-sdk/client-s3",
    r"""boto3\.(?:client|resource)\(\s*['"]s3['"]""",
    r"\bAmazonS3ClientBuilder\b",
)

DYNAMODB_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:dynamodb:{_REGION}:{_ACCOUNT}:table/[A-Za-z0-9_.-]+", ARN),
    _rule(rf"""\bTableName\s*[:=]\s*{_Q}([A-Za-z0-9_.-]{{3,255}}){_Q}""", TABLE),
    _rule(r"""\.Table\(\s*['"]([A-Za-z0-9_.-]{3,255})['"]""", TABLE),
) + _client_rules(
    r"\bDynamoDBClient\b",
    r"\bDynamoDBDocumentClient\b",
    r"\bAWS\.DynamoDB\b",
    r"@aws-sdk/client-dynamodb",
    r"""boto3\.(?:client|resource)\(\s*['"]dynamodb['"]""",
)

EVENTBRIDGE_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:events:{_REGION}:{_ACCOUNT}:event-bus/[A-Za-z0-9_./-]+", ARN),
    _rule(rf"""\bEventBusName\s*[:=]\s*{_Q}([A-Za-z0-9_./-]+){_Q}""", EVENT_BUS),
) + _client_rules(
    r"\bEventBridgeClient\b",
    r"\bAWS\.EventBridge\b",
    r"@aws-sdk/client-eventbridge",
    r"""boto3\.client\(\s*['"]events['"]""",
)

STEPFUNCTIONS_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:states:{_REGION}:{_ACCOUNT}:stateMachine:[A-Za-z0-9_-]+", ARN),
    _rule(rf"""\bstateMachineArn\s*[:=]\s*{_Q}(arn:[^'"`\s]+){_Q}""", ARN, re.IGNORECASE),
) + _client_rules(
    r"\bSFNClient\b",
    r"\bAWS\.StepFunctions\b",
    r"@aws-sdk/client-sfn",
    r"""boto3\.client\(\s*['"]stepfunctions['"]""",
)

KINESIS_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:kinesis:{_REGION}:{_ACCOUNT}:stream/[A-Za-z0-9_.-]+", ARN),
    _rule(rf"""\bStreamName\s*[:=]\s*{_Q}([A-Za-z0-9_.-]+){_Q}""", STREAM),
) + _client_rules(
    r"\bKinesisClient\b",
    r"\bAWS\.Kinesis\b",
    r"@aws-sdk/client-kinesis",
    r"""boto3\.client\(\s*['"]kinesis['"]""",
)

SECRETSMANAGER_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:secretsmanager:{_REGION}:{_ACCOUNT}:secret:[A-Za-z0-9/_+=.@-]+", ARN),
    _rule(rf"""\bSecretId\s*[:=]\s*{_Q}([A-Za-z0-9/_+=.@-]+){_Q}""", SECRET),
) + _client_rules(
    r"\bSecretsManagerClient\b",
    r"\bAWS\.SecretsManager\b",
    r"@aws-sdk/client-secrets-manager",
    r"""boto3\.client\(\s*['"]secretsmanager['"]""",
)

SSM_PATTERNS = (
    _rule(rf"arn:{_PARTITION}:ssm:{_REGION}:{_ACCOUNT}:parameter/[A-Za-z0-9/_.-]+", ARN),
    _rule(
        rf"""\b(?:getParameter|get_parameter|GetParameterCommand)\s*\(\s*\{{?\s*Name\s*[:=]\s*{_Q}([A-Za-z0-9/_.-]+){_Q}""",
        PARAMETER,
    ),
) + _client_rules(
    r"\bSSMClient\b",
    r"\bAWS\.SSM\b",
    r"@aws-sdk/client-ssm",
    r"""boto3\.client\(\s*['"]ssm['"]""",
)

SERVICE_PATTERNS: Mapping[str, Tuple[PatternRule, ...]] = MappingProxyType({
    "SQS": SQS_PATTERNS,
    "SNS": SNS_PATTERNS,
    "S3": S3_PATTERNS,
    "DynamoDB": DYNAMODB_PATTERNS,
    "EventBridge": EVENTBRIDGE_PATTERNS,
    "StepFunctions": STEPFUNCTIONS_PATTERNS,
    "Kinesis": KINESIS_PATTERNS,
    "SecretsManager": SECRETSMANAGER_PATTERNS,
    "SSM": SSM_PATTERNS,
})
