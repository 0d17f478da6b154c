from lambdamap.compiler.layout import compute_layout
from lambdamap.compiler.render_mermaid import render_mermaid
from lambdamap.compiler.types import Edge, Graph, Node
from lambdamap.ir.validation import ValidationStep
from lambdamap.renderer.html_page import render_page
from lambdamap.renderer.svg_renderer import render_svg
from lambdamap.visual.visual_style import pick_text_color, service_color

QUEUE_ARN = "arn:aws:sqs:us-east-1:111122223333:q1"
FUNCTION_ARN = "arn:aws:lambda:us-east-1:111122223333:function:B"

GRAPH = Graph(
    nodes=(
        Node(QUEUE_ARN, "q1", "SQS"),
        Node(FUNCTION_ARN, 'B "worker"', "Lambda"),
        Node("service://SNS", "SNS", "SNS"),
    ),
    edges=(
        Edge(QUEUE_ARN, FUNCTION_ARN, "eventSource"),
        Edge(FUNCTION_ARN, "service://SNS", "usesService"),
    ),
)


def test_mermaid_flowchart():
    text = render_mermaid(GRAPH)
    lines = text.splitlines()

    assert lines[0] == "flowchart LR"
    assert '  subgraph svc_SQS_group["SQS"]' in lines
    assert '    n1["q1"]' in lines
    assert "n2[\"B 'worker'\"]" in text
    assert "  n1 -->|eventSource| n2" in lines
    assert "  n2 -.->|usesService| n3" in lines
    assert "  class n2 svc_Lambda" in lines


def test_mermaid_empty_graph():
    assert render_mermaid(Graph()) == "flowchart LR"


def test_svg_draws_every_node_and_edge():
    svg = render_svg(compute_layout(GRAPH))

    assert svg.startswith("<svg")
    assert svg.count("<rect") == 3
    assert svg.count("<line") == 2
    assert "B &quot;worker&quot;" in svg
    assert 'stroke-dasharray="8 4"' in svg


def test_page_lists_steps_and_warnings():
    html = render_page(
        "<svg></svg>",
        [ValidationStep.success("authentication", "ok"), ValidationStep.failure("codeAnalysis", "failed")],
        ["Failed to download deployment package for A: <timeout>"],
        region="us-east-1",
    )

    assert '<li class="ok"><strong>authentication:</strong> ok</li>' in html
    assert '<li class="fail">' in html
    assert "&lt;timeout&gt;" in html
    assert 'id="error"' not in html


def test_page_shows_fatal_error():
    html = render_page("", [], [], region="eu-west-1", error="No Lambda functions were discovered.")
    assert '<div id="error">No Lambda functions were discovered.</div>' in html
    assert "eu-west-1" in html


def test_service_colors():
    assert service_color("Lambda") == "#FF9900"
    assert service_color("Glue") == service_color("Unknown")
    assert pick_text_color("#FFB547") == "#000000"
    assert pick_text_color("#2E0A57") == "#ffffff"
    assert pick_text_color("fff") == "#000000"
