"""
Metadata relationship extraction.

Each add_* function reads one relation category from a Lambda function
descriptor (the FunctionConfiguration shape returned by ListFunctions) and
writes nodes/edges into the GraphBuilder. None of them perform I/O; event
source mappings and aliases are fetched by the discovery driver and passed in.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from lambdamap.compiler.builder import GraphBuilder
from lambdamap.compiler.types import Edge, Node
from lambdamap.ir.arn import describe_arn

LATEST_VERSION = "$LATEST"

ARN_IN_TEXT = re.compile(r"arn:[A-Za-z0-9_\-:/.]+")
S3_URI_IN_TEXT = re.compile(r"s3://([A-Za-z0-9_.\-]+)")


# -------------------------
# Function identity
# -------------------------

def function_node_id(descriptor: Mapping) -> str:
    return descriptor.get("FunctionArn") or descriptor.get("FunctionName")


def function_node(descriptor: Mapping) -> Node:
    return Node(
        id=function_node_id(descriptor),
        label=descriptor.get("FunctionName"),
        service="Lambda",
    )


def function_qualifiers(descriptor: Mapping, aliases: Iterable[Mapping] = ()) -> List[str]:
    """
    Qualified ARNs under which event source mappings may be registered:
    the unqualified ARN, an explicit published version, each alias and each
    alias's resolved version. Order is preserved, duplicates dropped.
    """
    base = function_node_id(descriptor)
    candidates = [base]

    version = descriptor.get("Version")
    if version and version != LATEST_VERSION:
        candidates.append(f"{base}:{version}")

    for alias in aliases:
        alias_arn = alias.get("AliasArn") or (
            f"{base}:{alias['Name']}" if alias.get("Name") else None
        )
        if alias_arn:
            candidates.append(alias_arn)
        alias_version = alias.get("FunctionVersion")
        if alias_version and alias_version != LATEST_VERSION:
            candidates.append(f"{base}:{alias_version}")

    seen = set()
    qualifiers = []
    for candidate in candidates:
        if candidate and candidate not in seen:
            seen.add(candidate)
            qualifiers.append(candidate)
    return qualifiers


def dedupe_event_source_mappings(mappings: Iterable[Mapping]) -> List[Mapping]:
    seen = set()
    unique = []
    for mapping in mappings:
        key = mapping.get("UUID") or (mapping.get("EventSourceArn"), mapping.get("FunctionArn"))
        if key in seen:
            continue
        seen.add(key)
        unique.append(mapping)
    return unique


# -------------------------
# Relation categories
# -------------------------

def _link(builder: GraphBuilder, source: str, node: Node, edge_type: str, reverse: bool = False):
    stored = builder.add_node(node)
    if reverse:
        return builder.add_edge(Edge(source=stored.id, target=source, type=edge_type))
    return builder.add_edge(Edge(source=source, target=stored.id, type=edge_type))


def _destination_value(value) -> Optional[str]:
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        return value.get("Destination") or None
    return None


def add_event_source_relations(builder: GraphBuilder, function_id: str, mappings: Iterable[Mapping]):
    for mapping in dedupe_event_source_mappings(mappings):
        source_arn = mapping.get("EventSourceArn")
        if source_arn:
            # data flows from the source into the function
            _link(builder, function_id, describe_arn(source_arn), "eventSource", reverse=True)

        # failed batches routed to an on-failure destination
        add_destination_relations(builder, function_id, {"DestinationConfig": mapping.get("DestinationConfig")})


def add_dead_letter_relation(builder: GraphBuilder, function_id: str, dead_letter_config: Optional[Mapping]):
    target = (dead_letter_config or {}).get("TargetArn")
    if not target:
        return
    _link(builder, function_id, describe_arn(target), "dlq")


def add_role_relation(builder: GraphBuilder, function_id: str, role_arn: Optional[str]):
    if not role_arn:
        return
    node = describe_arn(role_arn)
    _link(builder, function_id, Node(node.id, node.label, "IAM"), "usesRole")


def add_layer_relations(builder: GraphBuilder, function_id: str, layers: Optional[Iterable[Mapping]]):
    for layer in layers or []:
        layer_arn = layer.get("Arn")
        if not layer_arn:
            continue
        node = describe_arn(layer_arn)
        _link(builder, function_id, Node(node.id, node.label, "Lambda"), "layer")


def _vpc_node(resource_id: str, kind: str) -> Node:
    node_id = f"{kind}:{resource_id}"
    return Node(id=node_id, label=node_id, service="VPC")


def add_vpc_relations(builder: GraphBuilder, function_id: str, vpc_config: Optional[Mapping]):
    if not vpc_config:
        return

    for subnet_id in vpc_config.get("SubnetIds") or []:
        if subnet_id:
            _link(builder, function_id, _vpc_node(subnet_id, "subnet"), "subnet")

    for group_id in vpc_config.get("SecurityGroupIds") or []:
        if group_id:
            _link(builder, function_id, _vpc_node(group_id, "sg"), "securityGroup")


def extract_arns_from_env(variables: Optional[Mapping]) -> List[str]:
    """Identifiers and s3:// URIs embedded in environment variable values."""
    found: Dict[str, None] = {}
    for value in (variables or {}).values():
        if not isinstance(value, str):
            continue
        for match in ARN_IN_TEXT.findall(value):
            found.setdefault(match)
        for bucket in S3_URI_IN_TEXT.findall(value):
            found.setdefault(f"arn:aws:s3:::{bucket}")
    return list(found)


def add_environment_relations(builder: GraphBuilder, function_id: str, environment: Optional[Mapping]):
    variables = (environment or {}).get("Variables")
    if not variables:
        return
    for arn in extract_arns_from_env(variables):
        _link(builder, function_id, describe_arn(arn), "configRef")


def add_filesystem_relations(builder: GraphBuilder, function_id: str, fs_configs: Optional[Iterable[Mapping]]):
    for fs_config in fs_configs or []:
        fs_arn = fs_config.get("Arn")
        if not fs_arn:
            continue
        node = describe_arn(fs_arn)
        _link(builder, function_id, Node(node.id, node.label, "EFS"), "efs")


def add_kms_relation(builder: GraphBuilder, function_id: str, kms_arn: Optional[str]):
    if not kms_arn:
        return
    node = describe_arn(kms_arn)
    _link(builder, function_id, Node(node.id, node.label, "KMS"), "encryption")


def _destination_configs(descriptor: Mapping) -> List[Mapping]:
    configs = []
    if descriptor.get("DestinationConfig"):
        configs.append(descriptor["DestinationConfig"])
    for response_type in descriptor.get("FunctionResponseTypes") or []:
        if isinstance(response_type, Mapping) and response_type.get("DestinationConfig"):
            configs.append(response_type["DestinationConfig"])
    return configs


def add_destination_relations(builder: GraphBuilder, function_id: str, descriptor: Mapping):
    """
    OnSuccess / OnFailure / retry-exhausted destinations, whichever keys the
    config carries. Values are either ARNs or {"Destination": arn} blocks.
    """
    for config in _destination_configs(descriptor):
        for value in config.values():
            destination = _destination_value(value)
            if destination:
                _link(builder, function_id, describe_arn(destination), "destination")


def extract_function_relations(
    builder: GraphBuilder,
    descriptor: Mapping,
    mappings: Iterable[Mapping] = (),
) -> Tuple[str, int]:
    """Add the function node and every metadata relation. Returns (node id, edges added)."""
    before = builder.edge_count
    function_id = builder.add_node(function_node(descriptor)).id

    add_event_source_relations(builder, function_id, mappings)
    add_dead_letter_relation(builder, function_id, descriptor.get("DeadLetterConfig"))
    add_role_relation(builder, function_id, descriptor.get("Role"))
    add_layer_relations(builder, function_id, descriptor.get("Layers"))
    add_vpc_relations(builder, function_id, descriptor.get("VpcConfig"))
    add_environment_relations(builder, function_id, descriptor.get("Environment"))
    add_filesystem_relations(builder, function_id, descriptor.get("FileSystemConfigs"))
    add_kms_relation(builder, function_id, descriptor.get("KMSKeyArn"))
    add_destination_relations(builder, function_id, descriptor)

    return function_id, builder.edge_count - before
