from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple

from lambdamap.analysis.archive import ArchiveEntry
from lambdamap.analysis.patterns import (
    INVOCATION_PATTERNS,
    SERVICE_PATTERNS,
    PatternRule,
)

TARGET_ARN = "arn"
TARGET_NAME = "name"


@dataclass(frozen=True)
class InvocationTarget:
    type: str   # arn | name
    value: str


@dataclass(frozen=True)
class ServiceHint:
    service: str
    resource_kind: Optional[str] = None
    resource: Optional[str] = None

    @property
    def is_weak(self) -> bool:
        return self.resource is None


def _is_templated(value: str) -> bool:
    # `${prefix}-worker`, f"{name}", "%s" cannot be resolved statically
    return "${" in value or "{" in value or "%s" in value


class PackageScanner:
    """
    Runs the invocation and service-usage passes over the text entries of
    one deployment package. The rule tables are fixed at construction;
    re.Pattern.finditer keeps no state between calls.
    """

    def __init__(
        self,
        service_patterns: Mapping[str, Tuple[PatternRule, ...]] = SERVICE_PATTERNS,
        invocation_patterns: Tuple[PatternRule, ...] = INVOCATION_PATTERNS,
    ):
        self.service_patterns = service_patterns
        self.invocation_patterns = invocation_patterns

    def find_invocation_targets(self, entries: Iterable[ArchiveEntry]) -> List[InvocationTarget]:
        found = {}
        for entry in entries:
            for rule in self.invocation_patterns:
                for match in rule.pattern.finditer(entry.content):
                    value = (rule.capture(match) or "").strip()
                    if not value or _is_templated(value):
                        continue
                    target_type = TARGET_ARN if value.startswith("arn:") else TARGET_NAME
                    target = InvocationTarget(target_type, value)
                    found.setdefault((target.type, target.value), target)
        return list(found.values())

    def find_service_hints(self, entries: Iterable[ArchiveEntry]) -> List[ServiceHint]:
        found = {}
        for entry in entries:
            for service, rules in self.service_patterns.items():
                for rule in rules:
                    for match in rule.pattern.finditer(entry.content):
                        resource = rule.capture(match)
                        if rule.resource_kind is not None:
                            resource = (resource or "").strip()
                            if not resource or _is_templated(resource):
                                continue
                            hint = ServiceHint(service, rule.resource_kind, resource)
                            found.setdefault((service, rule.resource_kind, resource), hint)
                        else:
                            found.setdefault((service,), ServiceHint(service))
        return list(found.values())
