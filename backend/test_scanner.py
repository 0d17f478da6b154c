import re

import pytest

from lambdamap.analysis.archive import ArchiveEntry
from lambdamap.analysis.patterns import SERVICE_PATTERNS, PatternRule
from lambdamap.analysis.scanner import InvocationTarget, PackageScanner, ServiceHint

scanner = PackageScanner()


def _entries(*contents):
    return [ArchiveEntry(f"file{i}.js", c) for i, c in enumerate(contents)]


def test_function_name_literal():
    targets = scanner.find_invocation_targets(_entries('await lambda.send(new InvokeCommand({ FunctionName: "B" }));'))
    assert targets == [InvocationTarget("name", "B")]


def test_python_invoke_with_arn():
    arn = "arn:aws:lambda:us-east-1:111122223333:function:billing:prod"
    targets = scanner.find_invocation_targets(_entries(f"client.invoke(FunctionName='{arn}')"))
    assert InvocationTarget("arn", arn) in targets
    assert len(targets) == 1


def test_invoke_call_and_dedup_across_entries():
    targets = scanner.find_invocation_targets(_entries("invoke('worker')", "invokeAsync(\"worker\")"))
    assert targets == [InvocationTarget("name", "worker")]


def test_templated_names_are_ignored():
    targets = scanner.find_invocation_targets(_entries(
        "FunctionName: `${prefix}-worker`",
        "FunctionName=f\"{stage}-worker\"",
        "FunctionName = '%s-worker'",
    ))
    assert targets == []


def test_mismatched_quotes_do_not_match():
    assert scanner.find_invocation_targets(_entries("FunctionName: 'B\"")) == []


def test_service_hints_with_resources():
    hints = scanner.find_service_hints(_entries(
        "const client = new SQSClient({});\n"
        "QueueUrl: 'https://sqs.us-east-1.amazonaws.com/111122223333/orders'\n"
        "s3.putObject({ Bucket: 'my-bucket', Key: k })\n"
        "table = boto3.resource('dynamodb').Table('Orders')\n"
    ))

    assert ServiceHint("SQS") in hints
    assert ServiceHint("SQS", "queueUrl", "https://sqs.us-east-1.amazonaws.com/111122223333/orders") in hints
    assert ServiceHint("S3", "bucket", "my-bucket") in hints
    assert ServiceHint("DynamoDB", "table", "Orders") in hints
    assert ServiceHint("DynamoDB") in hints


def test_weak_hint_reported_once_per_service():
    hints = scanner.find_service_hints(_entries("new SNSClient()", "AWS.SNS", "@aws-sdk/client-sns"))
    assert hints == [ServiceHint("SNS")]


def test_custom_rule_table():
    custom = PackageScanner(
        service_patterns={"Glue": (PatternRule(re.compile(r"job:(\w+)"), "job"),)},
        invocation_patterns=(),
    )
    hints = custom.find_service_hints(_entries("job:nightly job:nightly"))
    assert hints == [ServiceHint("Glue", "job", "nightly")]


def test_repeated_scans_are_independent():
    entries = _entries("FunctionName: 'B'")
    assert scanner.find_invocation_targets(entries) == scanner.find_invocation_targets(entries)


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        SERVICE_PATTERNS["Lambda"] = ()
