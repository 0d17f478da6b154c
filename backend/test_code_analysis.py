from lambdamap.analysis.code_analysis import CodeAnalyzer, drop_shadowed_weak_hints
from lambdamap.analysis.resolver import build_function_index
from lambdamap.analysis.scanner import ServiceHint
from lambdamap.compiler.builder import GraphBuilder
from lambdamap.ir.errors import PackageTooLargeError
from lambdamap.pipeline.relations import function_node


def _setup(make_function, *names):
    descriptors = [make_function(n) for n in names]
    builder = GraphBuilder()
    for d in descriptors:
        builder.add_node(function_node(d))
    return descriptors, builder, build_function_index(descriptors)


def _edges(builder):
    return {(e.source, e.target, e.type) for e in builder.snapshot().edges}


def test_invocation_literal_adds_invokes_edge(make_function, make_zip, packages, settings):
    (a, b), builder, index = _setup(make_function, "A", "B")
    packages.payloads[a["FunctionArn"]] = make_zip({"index.js": 'lambda.invoke({ FunctionName: "B" })'})

    outcome = CodeAnalyzer(packages, settings).analyze(a, builder, index)

    assert outcome.attempted and not outcome.failed
    assert outcome.edges_added == 1
    assert _edges(builder) == {(a["FunctionArn"], b["FunctionArn"], "invokes")}


def test_self_reference_is_skipped(make_function, make_zip, packages, settings):
    (a, _), builder, index = _setup(make_function, "A", "B")
    packages.payloads[a["FunctionArn"]] = make_zip({"index.js": 'FunctionName: "A"'})

    outcome = CodeAnalyzer(packages, settings).analyze(a, builder, index)

    assert outcome.edges_added == 0
    assert builder.edge_count == 0


def test_service_usage_edges(make_function, make_zip, packages, settings):
    (a,), builder, index = _setup(make_function, "A")
    packages.payloads[a["FunctionArn"]] = make_zip({
        "handler.py": (
            "import boto3\n"
            "sqs = boto3.client('sqs')\n"
            "sns = boto3.client('sns')\n"
            "QueueUrl = 'https://sqs.us-east-1.amazonaws.com/111122223333/orders'\n"
        ),
    })

    CodeAnalyzer(packages, settings).analyze(a, builder, index)

    targets = {t for _, t, kind in _edges(builder) if kind == "usesService"}
    # the SQS client is shadowed by the concrete queue
    assert targets == {"arn:aws:sqs:us-east-1:111122223333:orders", "service://SNS"}


def test_unknown_invocation_target_gets_reference_node(make_function, make_zip, packages, settings):
    (a,), builder, index = _setup(make_function, "A")
    packages.payloads[a["FunctionArn"]] = make_zip({"index.js": "invoke('ghost')"})

    CodeAnalyzer(packages, settings).analyze(a, builder, index)

    assert builder.get_node("function-ref://ghost").service == "Lambda"


def test_download_failure_becomes_warning(make_function, packages, settings):
    (a,), builder, index = _setup(make_function, "A")
    packages.payloads[a["FunctionArn"]] = PackageTooLargeError("https://example.com/a.zip", 10)

    outcome = CodeAnalyzer(packages, settings).analyze(a, builder, index)

    assert outcome.failed
    assert "A" in outcome.warnings[0]
    assert "exceeds" in outcome.warnings[0]


def test_unreadable_archive_becomes_warning(make_function, packages, settings):
    (a,), builder, index = _setup(make_function, "A")
    packages.payloads[a["FunctionArn"]] = b"definitely not a zip"

    outcome = CodeAnalyzer(packages, settings).analyze(a, builder, index)

    assert outcome.failed
    assert outcome.warnings[0].startswith("Failed to read deployment package for A")


def test_location_failures(make_function, packages, settings):
    (a, b), builder, index = _setup(make_function, "A", "B")
    packages.location_errors.add(a["FunctionArn"])
    analyzer = CodeAnalyzer(packages, settings)

    located = analyzer.analyze(a, builder, index)
    missing = analyzer.analyze(b, builder, index)

    assert located.failed and "ResourceNotFoundException" in located.warnings[0]
    assert missing.failed and missing.warnings == ["No deployment package location returned for B"]


def test_container_images_are_not_attempted(make_function, packages, settings):
    descriptors = [make_function("img", PackageType="Image")]
    outcome = CodeAnalyzer(packages, settings).analyze(
        descriptors[0], GraphBuilder(), build_function_index(descriptors)
    )
    assert not outcome.attempted
    assert not outcome.failed


def test_drop_shadowed_weak_hints():
    hints = [ServiceHint("SQS"), ServiceHint("SQS", "arn", "arn:aws:sqs:us-east-1:1:q"), ServiceHint("SNS")]
    assert drop_shadowed_weak_hints(hints) == hints[1:]
