"""
Resolution of scanner findings into graph nodes.

Invocation targets are matched against the functions discovered in this
run; anything unmatched still becomes a node so the graph shows the
inferred (but unconfirmed) reference.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional
from urllib.parse import quote

from lambdamap.analysis import patterns as kinds
from lambdamap.analysis.scanner import TARGET_ARN, InvocationTarget, ServiceHint
from lambdamap.compiler.types import Node
from lambdamap.ir.arn import (
    ResourceIdentifier,
    build_arn,
    describe_arn,
    parse_arn,
    unqualified_function_arn,
)
from lambdamap.pipeline.relations import function_node

QUEUE_URL = re.compile(
    r"^https?://sqs\.(?P<region>[a-z0-9-]+)\.amazonaws\.com(?P<cn>\.cn)?/(?P<account>\d{12})/(?P<name>[A-Za-z0-9_.-]+)/?$"
)

FUNCTION_REF_PREFIX = "function-ref://"


@dataclass
class FunctionIndex:
    by_arn: Dict[str, Node] = field(default_factory=dict)
    by_name: Dict[str, Node] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.by_name)


def build_function_index(descriptors: Iterable[Mapping]) -> FunctionIndex:
    """Built once per discovery run, before any package is scanned."""
    index = FunctionIndex()
    for descriptor in descriptors:
        node = function_node(descriptor)
        arn = descriptor.get("FunctionArn")
        if arn:
            index.by_arn.setdefault(arn, node)
            index.by_arn.setdefault(unqualified_function_arn(arn), node)
        name = descriptor.get("FunctionName")
        if name:
            index.by_name.setdefault(name, node)
    return index


def resolve_invocation_target(target: InvocationTarget, index: FunctionIndex) -> Node:
    if target.type == TARGET_ARN:
        match = index.by_arn.get(target.value)
        if match is not None:
            return match
        normalized = unqualified_function_arn(target.value)
        match = index.by_arn.get(normalized)
        if match is not None:
            return match
        described = describe_arn(normalized)
        return Node(id=normalized, label=described.label, service="Lambda")

    match = index.by_name.get(target.value)
    if match is None and ":" in target.value:
        match = index.by_name.get(target.value.split(":", 1)[0])
    if match is not None:
        return match
    return Node(id=f"{FUNCTION_REF_PREFIX}{target.value}", label=target.value, service="Lambda")


def queue_url_to_arn(url: str) -> Optional[str]:
    m = QUEUE_URL.match(url)
    if not m:
        return None
    partition = "aws-cn" if m.group("cn") else "aws"
    return build_arn(partition, "sqs", m.group("region"), m.group("account"), m.group("name"))


def _scoped_arn(origin: Optional[ResourceIdentifier], service: str, resource: str) -> Optional[str]:
    if origin is None or not origin.region or not origin.account_id:
        return None
    return build_arn(origin.partition or "aws", service, origin.region, origin.account_id, resource)


def _named(service: str, node_id: str, label: str) -> Node:
    return Node(id=node_id, label=label, service=service)


def resolve_service_hint(hint: ServiceHint, origin: Optional[ResourceIdentifier] = None) -> Node:
    """
    Turn a service hint into a node. Name-only resources are expanded into
    identifiers in the scanning function's own region/account.
    """
    service = hint.service
    value = hint.resource

    if hint.is_weak:
        return _named(service, f"service://{service}", service)

    if value.startswith("arn:"):
        described = describe_arn(value)
        return Node(id=described.id, label=described.label, service=service)

    if hint.resource_kind == kinds.QUEUE_URL:
        arn = queue_url_to_arn(value)
        if arn:
            return Node(id=arn, label=describe_arn(arn).label, service=service)
        label = value.rstrip("/").rsplit("/", 1)[-1] or value
        return _named(service, f"sqs-url://{quote(value, safe='')}", label)

    if hint.resource_kind == kinds.BUCKET:
        partition = origin.partition if origin and origin.partition else "aws"
        return _named(service, f"arn:{partition}:s3:::{value}", value)

    scoped_resources = {
        kinds.TABLE: ("dynamodb", f"table/{value}"),
        kinds.TOPIC_NAME: ("sns", value),
        kinds.EVENT_BUS: ("events", f"event-bus/{value}"),
        kinds.STREAM: ("kinesis", f"stream/{value}"),
        kinds.PARAMETER: ("ssm", f"parameter/{value.lstrip('/')}"),
    }
    if hint.resource_kind in scoped_resources:
        arn_service, resource = scoped_resources[hint.resource_kind]
        arn = _scoped_arn(origin, arn_service, resource)
        if arn:
            return _named(service, arn, value)

    # secrets are addressed by name or partial ARN; no stable identifier
    return _named(service, f"{service.lower()}-ref://{value}", value)
