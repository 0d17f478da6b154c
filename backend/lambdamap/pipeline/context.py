from dataclasses import dataclass, field
from typing import List, Optional

from lambdamap.compiler.types import Graph
from lambdamap.ir.validation import ValidationStep


@dataclass
class DiscoveryResult:
    # Discovered topology (empty when the run failed fatally)
    graph: Graph = field(default_factory=Graph)

    # One step per discovery phase, in the order performed
    steps: List[ValidationStep] = field(default_factory=list)

    # Per-resource failures that did not stop the run
    warnings: List[str] = field(default_factory=list)

    fatal_error: Optional[str] = None
    region: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.fatal_error is None

    def add_warning(self, message: str):
        self.warnings.append(message)

    def fail(self, step: ValidationStep, error: str) -> "DiscoveryResult":
        self.steps.append(step)
        self.graph = Graph()
        self.fatal_error = error
        return self

    def to_dict(self) -> dict:
        return {
            "graph": self.graph.to_dict(),
            "validationSteps": [s.to_dict() for s in self.steps],
            "warnings": list(self.warnings),
            "error": self.fatal_error,
            "region": self.region,
        }
