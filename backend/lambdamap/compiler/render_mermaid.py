# backend/lambdamap/compiler/render_mermaid.py

import re
from collections import defaultdict

from lambdamap.compiler.types import Graph
from lambdamap.visual.visual_style import EDGE_STYLE, pick_text_color, service_color


class _IdMapper:
    """Maps ARNs and synthetic keys to short Mermaid-safe sequential IDs."""

    def __init__(self, prefix: str = "n"):
        self._prefix = prefix
        self._counter = 0
        self._map: dict[str, str] = {}

    def get(self, raw_id: str) -> str:
        if raw_id not in self._map:
            self._counter += 1
            self._map[raw_id] = f"{self._prefix}{self._counter}"
        return self._map[raw_id]


def _class_name(service: str) -> str:
    return "svc_" + re.sub(r"[^a-zA-Z0-9_]", "_", service)


def _escape(label: str) -> str:
    return label.replace('"', "'")


def render_mermaid(graph: Graph) -> str:
    ids = _IdMapper()
    lines = ["flowchart LR"]

    # -------------------------
    # Nodes grouped by service
    # -------------------------
    by_service = defaultdict(list)
    for node in graph.nodes:
        by_service[node.service or "Unknown"].append(node)

    for service, nodes in by_service.items():
        lines.append(f'  subgraph {_class_name(service)}_group["{service}"]')
        for node in nodes:
            lines.append(f'    {ids.get(node.id)}["{_escape(node.label or node.id)}"]')
        lines.append("  end")

    # -------------------------
    # Edges
    # -------------------------
    for edge in graph.edges:
        arrow = "-.->" if EDGE_STYLE.get(edge.type) in ("dashed", "dotted") else "-->"
        label = f"|{edge.type}|" if edge.type else ""
        lines.append(f"  {ids.get(edge.source)} {arrow}{label} {ids.get(edge.target)}")

    # -------------------------
    # Service colours
    # -------------------------
    for service, nodes in by_service.items():
        fill = service_color(service)
        class_name = _class_name(service)
        lines.append(
            f"  classDef {class_name} fill:{fill},stroke:#333,color:{pick_text_color(fill)}"
        )
        lines.append(f"  class {','.join(ids.get(n.id) for n in nodes)} {class_name}")

    return "\n".join(lines)
