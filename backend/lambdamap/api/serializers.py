from typing import List

from lambdamap.ir.validation import ValidationStep
from lambdamap.pipeline.context import DiscoveryResult
from lambdamap.schemas import (
    EdgeModel,
    GraphModel,
    GraphResponse,
    NodeModel,
    ValidationStepModel,
)


def serialize_result(result: DiscoveryResult, steps: List[ValidationStep]) -> GraphResponse:
    """
    Build the /graph.json payload. Steps are passed separately because the
    HTTP layer appends its own rendering step to the discovery steps.
    """
    return GraphResponse(
        graph=GraphModel(
            nodes=[
                NodeModel(id=n.id, label=n.label or n.id, service=n.service or "Unknown")
                for n in result.graph.nodes
            ],
            edges=[
                EdgeModel(source=e.source, target=e.target, type=e.type)
                for e in result.graph.edges
            ],
        ),
        validationSteps=[
            ValidationStepModel(action=s.action, status=s.status, message=s.message)
            for s in steps
        ],
        warnings=list(result.warnings),
        error=result.fatal_error,
        region=result.region,
    )
