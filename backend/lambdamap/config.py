import os
from dataclasses import dataclass, field
from typing import FrozenSet

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


AWS_REGION = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1"
AWS_PROFILE = os.getenv("AWS_PROFILE")

PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ANALYZE_CODE = _env_bool("LAMBDAMAP_ANALYZE_CODE", True)

# Network limits
AWS_CONNECT_TIMEOUT = float(os.getenv("LAMBDAMAP_AWS_CONNECT_TIMEOUT", "5"))
AWS_READ_TIMEOUT = float(os.getenv("LAMBDAMAP_AWS_READ_TIMEOUT", "20"))
DOWNLOAD_TIMEOUT = float(os.getenv("LAMBDAMAP_DOWNLOAD_TIMEOUT", "15"))
MAX_PACKAGE_BYTES = int(os.getenv("LAMBDAMAP_MAX_PACKAGE_BYTES", str(50 * 1024 * 1024)))

# Archive extraction caps
MAX_ENTRY_BYTES = int(os.getenv("LAMBDAMAP_MAX_ENTRY_BYTES", str(512 * 1024)))
MAX_TOTAL_BYTES = int(os.getenv("LAMBDAMAP_MAX_TOTAL_BYTES", str(8 * 1024 * 1024)))
MAX_ENTRIES = int(os.getenv("LAMBDAMAP_MAX_ENTRIES", "400"))

TEXT_EXTENSIONS = frozenset({
    ".js", ".mjs", ".cjs", ".ts", ".mts", ".cts", ".jsx", ".tsx",
    ".py", ".rb", ".go", ".java", ".kt", ".cs", ".php", ".sh",
    ".json", ".yml", ".yaml", ".toml", ".ini", ".cfg", ".conf",
    ".properties", ".env", ".txt",
})


@dataclass
class DiscoverySettings:
    region: str = AWS_REGION
    profile: str | None = AWS_PROFILE
    analyze_code: bool = ANALYZE_CODE
    aws_connect_timeout: float = AWS_CONNECT_TIMEOUT
    aws_read_timeout: float = AWS_READ_TIMEOUT
    download_timeout: float = DOWNLOAD_TIMEOUT
    max_package_bytes: int = MAX_PACKAGE_BYTES
    max_entry_bytes: int = MAX_ENTRY_BYTES
    max_total_bytes: int = MAX_TOTAL_BYTES
    max_entries: int = MAX_ENTRIES
    text_extensions: FrozenSet[str] = field(default_factory=lambda: TEXT_EXTENSIONS)


def get_settings() -> DiscoverySettings:
    return DiscoverySettings()
