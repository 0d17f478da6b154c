# Service colours and edge styles shared by the Mermaid and SVG renderers

from lambdamap.visual.visual_style import (
    EDGE_STYLE,
    SERVICE_COLORS,
    pick_text_color,
    service_color,
)

__all__ = [
    "EDGE_STYLE",
    "SERVICE_COLORS",
    "pick_text_color",
    "service_color",
]
