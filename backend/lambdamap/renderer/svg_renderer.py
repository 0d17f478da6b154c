from html import escape

from lambdamap.compiler.types import PositionedGraph
from lambdamap.visual.visual_style import EDGE_STYLE, pick_text_color, service_color

NODE_WIDTH = 200
NODE_HEIGHT = 72
CANVAS_PADDING = 80

DASH = {"dashed": "8 4", "dotted": "2 4"}


def render_svg(graph: PositionedGraph) -> str:
    if not graph.nodes:
        return '<svg width="0" height="0" xmlns="http://www.w3.org/2000/svg"></svg>'

    w = max(n.x for n in graph.nodes) + NODE_WIDTH + CANVAS_PADDING
    h = max(n.y for n in graph.nodes) + NODE_HEIGHT + CANVAS_PADDING

    svg = [
        f'<svg width="{w:.0f}" height="{h:.0f}" xmlns="http://www.w3.org/2000/svg">',
        '<defs><marker id="arrow" markerWidth="10" markerHeight="10" refX="9" refY="3" '
        'orient="auto"><path d="M0,0 L0,6 L9,3 z" fill="#555"/></marker></defs>',
    ]

    # Draw edges first
    node_map = {n.id: n for n in graph.nodes}

    for e in graph.edges:
        src = node_map.get(e.source)
        dst = node_map.get(e.target)
        if src is None or dst is None:
            continue

        x1 = src.x + NODE_WIDTH
        y1 = src.y + NODE_HEIGHT / 2
        x2 = dst.x
        y2 = dst.y + NODE_HEIGHT / 2

        dash = DASH.get(EDGE_STYLE.get(e.type, "solid"))
        dash_attr = f' stroke-dasharray="{dash}"' if dash else ""
        svg.append(
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" '
            f'stroke="#555" stroke-width="1.5" marker-end="url(#arrow)"{dash_attr}>'
            f'<title>{escape(e.type or "")}</title></line>'
        )

    # Draw nodes
    for n in graph.nodes:
        fill = service_color(n.service)
        svg.append(
            f'<g><title>{escape(n.id)}</title>'
            f'<rect x="{n.x}" y="{n.y}" width="{NODE_WIDTH}" height="{NODE_HEIGHT}" '
            f'rx="8" ry="8" fill="{fill}" stroke="#333"/>'
            f'<text x="{n.x + NODE_WIDTH / 2}" y="{n.y + NODE_HEIGHT / 2 - 8}" '
            f'text-anchor="middle" dominant-baseline="middle" font-family="Arial" '
            f'font-size="14" fill="{pick_text_color(fill)}">{escape(n.label)}</text>'
            f'<text x="{n.x + NODE_WIDTH / 2}" y="{n.y + NODE_HEIGHT / 2 + 12}" '
            f'text-anchor="middle" dominant-baseline="middle" font-family="Arial" '
            f'font-size="11" fill="{pick_text_color(fill)}">{escape(n.service)}</text></g>'
        )

    svg.append("</svg>")
    return "\n".join(svg)
