from html import escape
from typing import Iterable, List

from lambdamap.ir.validation import ValidationStep

PAGE_STYLE = """
body { font-family: Arial, sans-serif; margin: 0; padding: 16px; background: #f8f9fa; }
#error { background: #fdecea; color: #611a15; padding: 12px; border-radius: 4px; }
ul.validation li.ok { color: #2e7d32; }
ul.validation li.fail { color: #c62828; }
#graph { overflow: auto; background: #fff; border: 1px solid #e9ecef; }
"""


def render_validation_list(steps: Iterable[ValidationStep]) -> str:
    items = []
    for step in steps:
        css = "ok" if step.ok else "fail"
        items.append(
            f'<li class="{css}"><strong>{escape(step.action)}:</strong> {escape(step.message)}</li>'
        )
    if not items:
        return "<p>No validation steps recorded.</p>"
    return f'<ul class="validation">{"".join(items)}</ul>'


def render_warnings(warnings: List[str]) -> str:
    if not warnings:
        return ""
    items = "".join(f"<li>{escape(w)}</li>" for w in warnings)
    return f'<div id="warnings"><h2>Warnings</h2><ul>{items}</ul></div>'


def render_page(
    svg: str,
    steps: Iterable[ValidationStep],
    warnings: List[str],
    region: str,
    error: str | None = None,
) -> str:
    error_html = f'<div id="error">{escape(error)}</div>' if error else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        "<title>AWS Service Graph</title>"
        f"<style>{PAGE_STYLE}</style></head><body>"
        f"<h1>Lambda topology ({escape(region)})</h1>"
        f"{error_html}"
        f"{render_validation_list(steps)}"
        f"{render_warnings(warnings)}"
        f'<div id="graph">{svg}</div>'
        '<p><a href="/graph.json">graph.json</a> | <a href="/graph.mmd">graph.mmd</a></p>'
        "</body></html>"
    )
