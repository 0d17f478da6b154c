from lambdamap.ir.arn import (
    build_arn,
    describe_arn,
    normalize_service,
    parse_arn,
    unqualified_function_arn,
)

QUEUE_ARN = "arn:aws:sqs:us-east-1:111122223333:q1"
FUNCTION_ARN = "arn:aws:lambda:us-east-1:111122223333:function:orders"


def test_parse_splits_identifier_fields():
    parsed = parse_arn(QUEUE_ARN)
    assert parsed.partition == "aws"
    assert parsed.service == "sqs"
    assert parsed.region == "us-east-1"
    assert parsed.account_id == "111122223333"
    assert parsed.resource == "q1"
    assert parsed.resource_id == "q1"


def test_parse_keeps_colons_inside_resource():
    parsed = parse_arn(FUNCTION_ARN + ":prod")
    assert parsed.resource == "function:orders:prod"
    assert parsed.resource_type == "function"


def test_parse_slash_resource():
    parsed = parse_arn("arn:aws:dynamodb:us-east-1:111122223333:table/Orders")
    assert parsed.resource_type == "table"
    assert parsed.resource_id == "Orders"


def test_parse_is_deterministic():
    assert parse_arn(FUNCTION_ARN) == parse_arn(FUNCTION_ARN)


def test_parse_rejects_non_identifiers():
    assert parse_arn("q1") is None
    assert parse_arn("arn:aws:s3") is None
    assert parse_arn(None) is None
    assert parse_arn(42) is None


def test_normalize_service_table():
    assert normalize_service("lambda") == "Lambda"
    assert normalize_service("states") == "StepFunctions"
    assert normalize_service("execute-api") == "APIGateway"
    assert normalize_service("elasticfilesystem") == "EFS"
    assert normalize_service("ssmmessages") == "SSM"
    assert normalize_service("glue") == "Glue"
    assert normalize_service("") == "Unknown"
    assert normalize_service(None) == "Unknown"


def test_describe_bucket_uses_full_resource():
    node = describe_arn("arn:aws:s3:::my-bucket")
    assert node.label == "my-bucket"
    assert node.service == "S3"


def test_describe_queue_and_function():
    assert describe_arn(QUEUE_ARN).label == "q1"
    node = describe_arn(FUNCTION_ARN)
    assert node.label == "orders"
    assert node.service == "Lambda"


def test_describe_non_identifier_falls_back_to_raw_value():
    node = describe_arn("subnet-123")
    assert node.id == "subnet-123"
    assert node.label == "subnet-123"
    assert node.service == "Unknown"


def test_unqualified_function_arn():
    assert unqualified_function_arn(FUNCTION_ARN + ":prod") == FUNCTION_ARN
    assert unqualified_function_arn(FUNCTION_ARN + ":7") == FUNCTION_ARN
    assert unqualified_function_arn(FUNCTION_ARN) == FUNCTION_ARN
    assert unqualified_function_arn(QUEUE_ARN) == QUEUE_ARN
    assert unqualified_function_arn("orders") == "orders"


def test_build_arn():
    assert build_arn("aws", "sqs", "us-east-1", "111122223333", "q1") == QUEUE_ARN
