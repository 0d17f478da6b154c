from dataclasses import dataclass, field
from typing import List, Mapping, Optional

import structlog

from lambdamap.analysis.archive import extract_text_entries
from lambdamap.analysis.resolver import (
    FunctionIndex,
    resolve_invocation_target,
    resolve_service_hint,
)
from lambdamap.analysis.scanner import PackageScanner, ServiceHint
from lambdamap.compiler.builder import GraphBuilder
from lambdamap.compiler.types import Edge
from lambdamap.config import DiscoverySettings
from lambdamap.ir.arn import parse_arn
from lambdamap.ir.errors import ArchiveError, DiscoveryError, PackageDownloadError
from lambdamap.pipeline.relations import function_node_id

logger = structlog.get_logger(__name__)


@dataclass
class CodeAnalysisOutcome:
    function_name: str
    attempted: bool = False
    failed: bool = False
    entries_scanned: int = 0
    edges_added: int = 0
    warnings: List[str] = field(default_factory=list)

    def fail(self, message: str):
        self.failed = True
        self.warnings.append(message)
        return self


def drop_shadowed_weak_hints(hints: List[ServiceHint]) -> List[ServiceHint]:
    """A bare client reference adds nothing once a concrete resource of that service is known."""
    concrete = {h.service for h in hints if not h.is_weak}
    return [h for h in hints if not (h.is_weak and h.service in concrete)]


class CodeAnalyzer:
    """
    Infers invokes/usesService edges from a function's deployment package.

    The package fetcher is any object exposing
    fetch_package_location(function_id) and download_bytes(url).
    """

    def __init__(self, packages, settings: DiscoverySettings, scanner: Optional[PackageScanner] = None):
        self.packages = packages
        self.settings = settings
        self.scanner = scanner or PackageScanner()

    def analyze(self, descriptor: Mapping, builder: GraphBuilder, index: FunctionIndex) -> CodeAnalysisOutcome:
        name = descriptor.get("FunctionName") or function_node_id(descriptor)
        function_id = function_node_id(descriptor)
        outcome = CodeAnalysisOutcome(function_name=name)

        if descriptor.get("PackageType") == "Image":
            logger.debug("code_analysis_skipped", function=name, reason="container image")
            return outcome

        outcome.attempted = True
        log = logger.bind(function=name)

        try:
            location = self.packages.fetch_package_location(function_id)
        except DiscoveryError as e:
            log.warning("package_location_failed", error=str(e))
            return outcome.fail(f"Failed to locate deployment package for {name}: {e}")

        if not location:
            return outcome.fail(f"No deployment package location returned for {name}")

        try:
            data = self.packages.download_bytes(location)
        except PackageDownloadError as e:
            log.warning("package_download_failed", reason=e.reason)
            return outcome.fail(f"Failed to download deployment package for {name}: {e.reason}")

        try:
            entries = extract_text_entries(data, self.settings)
        except ArchiveError as e:
            log.warning("package_unreadable", error=str(e))
            return outcome.fail(f"Failed to read deployment package for {name}: {e}")

        outcome.entries_scanned = len(entries)
        if not entries:
            return outcome

        before = builder.edge_count

        for target in self.scanner.find_invocation_targets(entries):
            node = resolve_invocation_target(target, index)
            if node.id == function_id:
                continue
            stored = builder.add_node(node)
            builder.add_edge(Edge(source=function_id, target=stored.id, type="invokes"))

        origin = parse_arn(function_id)
        hints = drop_shadowed_weak_hints(self.scanner.find_service_hints(entries))
        for hint in hints:
            node = resolve_service_hint(hint, origin)
            if node.id == function_id:
                continue
            stored = builder.add_node(node)
            builder.add_edge(Edge(source=function_id, target=stored.id, type="usesService"))

        outcome.edges_added = builder.edge_count - before
        log.info("package_analyzed", entries=len(entries), edges=outcome.edges_added)
        return outcome
