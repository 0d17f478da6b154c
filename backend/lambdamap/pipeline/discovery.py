"""
Discovery driver.

Runs the whole topology discovery for one account/region:
authentication -> function listing -> per-function metadata relations and
code analysis -> graph snapshot. Functions are processed one at a time and
every GraphBuilder write happens on this thread.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

import structlog

from lambdamap.analysis.code_analysis import CodeAnalyzer
from lambdamap.analysis.resolver import build_function_index
from lambdamap.analysis.scanner import PackageScanner
from lambdamap.compiler.builder import GraphBuilder
from lambdamap.config import DiscoverySettings, get_settings
from lambdamap.ir.errors import DiscoveryError
from lambdamap.ir.validation import ValidationStep
from lambdamap.pipeline.context import DiscoveryResult
from lambdamap.pipeline.relations import (
    extract_function_relations,
    function_node_id,
    function_qualifiers,
)

logger = structlog.get_logger(__name__)

AUTHENTICATION = "authentication"
RESOURCE_DISCOVERY = "resourceDiscovery"
CODE_ANALYSIS = "codeAnalysis"

CREDENTIALS_ERROR = "AWS credentials are missing or invalid. Please configure your ~/.aws credentials."
NO_FUNCTIONS_ERROR = "No Lambda functions were discovered. Please deploy at least one Lambda function."


@dataclass
class _PhaseCounter:
    attempts: int = 0
    failures: int = 0

    @property
    def all_failed(self) -> bool:
        return self.attempts > 0 and self.failures == self.attempts


class TopologyDiscovery:
    def __init__(
        self,
        identity,
        functions,
        packages=None,
        settings: Optional[DiscoverySettings] = None,
        scanner: Optional[PackageScanner] = None,
    ):
        self.identity = identity
        self.functions = functions
        self.settings = settings or get_settings()
        self.analyzer = None
        if packages is not None and self.settings.analyze_code:
            self.analyzer = CodeAnalyzer(packages, self.settings, scanner)

    # -------------------------
    # Event source mappings
    # -------------------------

    def _collect_event_source_mappings(
        self,
        descriptor: Mapping,
        result: DiscoveryResult,
        counter: _PhaseCounter,
    ) -> List[Mapping]:
        name = descriptor.get("FunctionName") or descriptor.get("FunctionArn")

        aliases: List[Mapping] = []
        counter.attempts += 1
        try:
            aliases = self.functions.list_aliases(name)
        except DiscoveryError as e:
            counter.failures += 1
            result.add_warning(f"Failed to list aliases for {name}: {e}")

        mappings: List[Mapping] = []
        for qualifier in function_qualifiers(descriptor, aliases):
            counter.attempts += 1
            try:
                mappings.extend(self.functions.list_event_source_mappings(qualifier))
            except DiscoveryError as e:
                counter.failures += 1
                result.add_warning(f"Failed to list event source mappings for {qualifier}: {e}")
        return mappings

    # -------------------------
    # Run
    # -------------------------

    def discover(self) -> DiscoveryResult:
        result = DiscoveryResult(region=self.settings.region)
        log = logger.bind(region=self.settings.region)

        try:
            identity = self.identity.resolve_identity()
        except DiscoveryError as e:
            log.error("authentication_failed", error=str(e))
            message = str(e) or "Unable to resolve AWS credentials."
            return result.fail(ValidationStep.failure(AUTHENTICATION, message), CREDENTIALS_ERROR)

        result.steps.append(ValidationStep.success(
            AUTHENTICATION,
            f"Authenticated as {identity.principal} in {self.settings.region}.",
        ))

        try:
            descriptors = list(self.functions.list_functions())
        except DiscoveryError as e:
            log.error("list_functions_failed", error=str(e))
            return result.fail(
                ValidationStep.failure(RESOURCE_DISCOVERY, f"ListFunctions failed: {e}"),
                f"Failed to retrieve Lambda functions: {e}",
            )

        malformed = [d for d in descriptors if not function_node_id(d)]
        if malformed:
            log.warning("malformed_function_entries", count=len(malformed))
            result.add_warning(
                f"Skipped {len(malformed)} function listing item(s) with no FunctionArn or FunctionName."
            )
            descriptors = [d for d in descriptors if function_node_id(d)]

        if not descriptors:
            return result.fail(
                ValidationStep.failure(RESOURCE_DISCOVERY, "No Lambda functions were found."),
                NO_FUNCTIONS_ERROR,
            )

        builder = GraphBuilder()
        index = build_function_index(descriptors)
        lookups = _PhaseCounter()
        packages = _PhaseCounter()
        inferred = 0

        for descriptor in descriptors:
            mappings = self._collect_event_source_mappings(descriptor, result, lookups)
            function_id, added = extract_function_relations(builder, descriptor, mappings)
            log.debug("function_relations", function=function_id, edges=added)

            if self.analyzer is None:
                continue

            outcome = self.analyzer.analyze(descriptor, builder, index)
            if outcome.attempted:
                packages.attempts += 1
            if outcome.failed:
                packages.failures += 1
            inferred += outcome.edges_added
            for warning in outcome.warnings:
                result.add_warning(warning)

        result.graph = builder.snapshot()
        related = max(len(result.graph.nodes) - len(descriptors), 0)

        message = f"Discovered {len(descriptors)} Lambda function(s) and {related} related resource(s)."
        if lookups.failures:
            message += f" {lookups.failures} of {lookups.attempts} trigger lookup(s) failed."
        if lookups.all_failed:
            result.steps.append(ValidationStep.failure(RESOURCE_DISCOVERY, message))
        else:
            result.steps.append(ValidationStep.success(RESOURCE_DISCOVERY, message))

        result.steps.append(self._code_analysis_step(packages, inferred))

        log.info(
            "discovery_complete",
            functions=len(descriptors),
            nodes=len(result.graph.nodes),
            edges=len(result.graph.edges),
            warnings=len(result.warnings),
        )
        return result

    def _code_analysis_step(self, packages: _PhaseCounter, inferred: int) -> ValidationStep:
        if self.analyzer is None:
            return ValidationStep.success(CODE_ANALYSIS, "Code analysis disabled.")
        if packages.attempts == 0:
            return ValidationStep.success(CODE_ANALYSIS, "No deployment packages to analyze.")
        if packages.all_failed:
            return ValidationStep.failure(
                CODE_ANALYSIS,
                f"Code analysis failed for all {packages.attempts} package(s).",
            )

        analyzed = packages.attempts - packages.failures
        message = f"Analyzed {analyzed} deployment package(s) and inferred {inferred} relation(s)."
        if packages.failures:
            message += f" {packages.failures} package(s) could not be analyzed."
        return ValidationStep.success(CODE_ANALYSIS, message)


def run_discovery(settings: Optional[DiscoverySettings] = None) -> DiscoveryResult:
    """Discover with the boto3 collaborators for the configured account/region."""
    from lambdamap.aws.client import create_aws_collaborators

    settings = settings or get_settings()
    try:
        identity, catalog, packages = create_aws_collaborators(settings)
    except DiscoveryError as e:
        result = DiscoveryResult(region=settings.region)
        return result.fail(ValidationStep.failure(AUTHENTICATION, str(e)), CREDENTIALS_ERROR)

    return TopologyDiscovery(identity, catalog, packages, settings).discover()
