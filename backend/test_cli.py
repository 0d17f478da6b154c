import json
from unittest.mock import patch

from lambdamap.cli import main
from lambdamap.compiler.types import Edge, Graph, Node
from lambdamap.pipeline.context import DiscoveryResult

GRAPH = Graph(
    nodes=(Node("a", "a", "Lambda"), Node("b", "b", "SQS")),
    edges=(Edge("b", "a", "eventSource"),),
)


def _run(argv, result):
    with patch("lambdamap.cli.run_discovery", return_value=result) as run:
        code = main(argv)
    return code, run.call_args[0][0]


def test_discover_json_with_layout(capsys):
    code, _ = _run(["discover", "--layout"], DiscoveryResult(graph=GRAPH, region="us-east-1"))

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    positions = {n["id"]: n["layer"] for n in payload["graph"]["nodes"]}
    assert positions == {"b": 0, "a": 1}
    assert "position" in payload["graph"]["nodes"][0]


def test_discover_mermaid_and_overrides(capsys):
    code, settings = _run(
        ["discover", "--format", "mermaid", "--region", "eu-west-1", "--no-code"],
        DiscoveryResult(graph=GRAPH),
    )

    assert code == 0
    assert capsys.readouterr().out.startswith("flowchart LR")
    assert settings.region == "eu-west-1"
    assert settings.analyze_code is False


def test_discover_fatal_exit_status(capsys):
    result = DiscoveryResult(fatal_error="No Lambda functions were discovered.")
    code, _ = _run(["discover"], result)

    assert code == 1
    assert "No Lambda functions were discovered." in capsys.readouterr().err
