SERVICE_COLORS = {
    "Lambda": "#FF9900",
    "S3": "#569A31",
    "DynamoDB": "#4053D6",
    "SQS": "#FF4F8B",
    "SNS": "#FFB547",
    "CloudWatch": "#6C6C6C",
    "CloudWatchEvents": "#1F4E79",
    "CloudTrail": "#2B6AAD",
    "Kinesis": "#2F87C4",
    "APIGateway": "#F58536",
    "StepFunctions": "#2E0A57",
    "EventBridge": "#3B48CC",
    "EC2": "#2E73B8",
    "VPC": "#A9A7A1",
    "IAM": "#634E86",
    "RDS": "#527FFF",
    "SecretsManager": "#2E7D32",
    "SSM": "#1B9984",
    "EFS": "#8A2BE2",
    "KMS": "#2F3FB0",
    "ELB": "#1D7B93",
    "Unknown": "#999999",
}

DEFAULT_SERVICE_COLOR = SERVICE_COLORS["Unknown"]

EDGE_STYLE = {
    "eventSource": "solid",
    "invokes": "solid",
    "usesService": "dashed",
    "configRef": "dotted",
    "usesRole": "dotted",
}


def normalize_color(color: str | None) -> str:
    if not color:
        return DEFAULT_SERVICE_COLOR
    if color.startswith("#") and len(color) in (4, 7):
        return color
    return "#" + color.lstrip("#")


def service_color(service: str | None) -> str:
    return SERVICE_COLORS.get(service or "Unknown", DEFAULT_SERVICE_COLOR)


def pick_text_color(color: str) -> str:
    """Black or white text, whichever reads better on the given fill."""
    hex_value = normalize_color(color).lstrip("#")
    if len(hex_value) == 3:
        hex_value = "".join(ch * 2 for ch in hex_value)
    try:
        r, g, b = (int(hex_value[i:i + 2], 16) / 255 for i in (0, 2, 4))
    except ValueError:
        return "#000000"
    luminance = 0.2126 * r + 0.7152 * g + 0.0722 * b
    return "#000000" if luminance > 0.65 else "#ffffff"
