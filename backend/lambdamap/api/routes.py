from typing import Callable, List

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from lambdamap.api.serializers import serialize_result
from lambdamap.compiler.layout import compute_layout
from lambdamap.compiler.render_mermaid import render_mermaid
from lambdamap.config import get_settings
from lambdamap.ir.validation import ValidationStep
from lambdamap.pipeline.context import DiscoveryResult
from lambdamap.pipeline.discovery import run_discovery
from lambdamap.renderer.html_page import render_page
from lambdamap.renderer.svg_renderer import render_svg

logger = structlog.get_logger(__name__)

router = APIRouter()

GRAPH_RENDERING = "graphRendering"
RUNTIME = "runtime"


def get_discovery_runner() -> Callable[[], DiscoveryResult]:
    settings = get_settings()
    return lambda: run_discovery(settings)


def _run(runner: Callable[[], DiscoveryResult]) -> tuple[DiscoveryResult, List[ValidationStep], int]:
    """Discovery plus the rendering step; never raises."""
    try:
        result = runner()
    except Exception as e:
        # reported as a runtime step
        logger.exception("discovery_crashed")
        message = f"Unexpected error while building graph: {e}"
        result = DiscoveryResult(region=get_settings().region, fatal_error=message)
        return result, [ValidationStep.failure(RUNTIME, message)], 500

    steps = list(result.steps)
    if result.fatal_error:
        steps.append(ValidationStep.failure(
            GRAPH_RENDERING, "Graph rendering skipped because discovery failed."
        ))
        return result, steps, 503

    steps.append(ValidationStep.success(
        GRAPH_RENDERING,
        f"Rendered {len(result.graph.nodes)} node(s) and {len(result.graph.edges)} edge(s).",
    ))
    return result, steps, 200


@router.get("/healthz", response_class=PlainTextResponse)
def healthz():
    return "ok"


@router.get("/graph.json")
def graph_json(runner=Depends(get_discovery_runner)):
    result, steps, status = _run(runner)
    payload = serialize_result(result, steps)
    return JSONResponse(status_code=status, content=payload.model_dump())


@router.get("/graph.mmd", response_class=PlainTextResponse)
def graph_mermaid(runner=Depends(get_discovery_runner)):
    result, _, status = _run(runner)
    return PlainTextResponse(render_mermaid(result.graph), status_code=status)


@router.get("/", response_class=HTMLResponse)
def graph_page(runner=Depends(get_discovery_runner)):
    result, steps, status = _run(runner)
    svg = render_svg(compute_layout(result.graph))
    html = render_page(
        svg,
        steps,
        result.warnings,
        region=result.region or get_settings().region,
        error=result.fatal_error,
    )
    return HTMLResponse(html, status_code=status)
