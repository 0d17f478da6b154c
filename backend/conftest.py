import io
import zipfile

import pytest

from lambdamap.aws.client import CallerIdentity
from lambdamap.config import DiscoverySettings, TEXT_EXTENSIONS
from lambdamap.ir.errors import DiscoveryError, PackageDownloadError

ACCOUNT = "111122223333"
REGION = "us-east-1"
PACKAGE_HOST = "https://packages.example.com/"


class FakeIdentity:
    def __init__(self, error=None):
        self.error = error

    def resolve_identity(self):
        if self.error:
            raise DiscoveryError(self.error)
        return CallerIdentity(
            principal=f"arn:aws:iam::{ACCOUNT}:user/tester",
            account_id=ACCOUNT,
            region=REGION,
        )


class FakeCatalog:
    def __init__(self, functions=None):
        self.functions = list(functions or [])
        self.mappings = {}          # qualifier -> [mapping]
        self.aliases = {}           # function name -> [alias]
        self.failing_qualifiers = set()
        self.failing_aliases = set()
        self.list_error = None
        self.mapping_calls = []

    def list_functions(self):
        if self.list_error:
            raise DiscoveryError(self.list_error)
        return list(self.functions)

    def list_event_source_mappings(self, qualifier):
        self.mapping_calls.append(qualifier)
        if qualifier in self.failing_qualifiers:
            raise DiscoveryError("AccessDeniedException: not authorized")
        return list(self.mappings.get(qualifier, []))

    def list_aliases(self, function_name):
        if function_name in self.failing_aliases:
            raise DiscoveryError("ThrottlingException: rate exceeded")
        return list(self.aliases.get(function_name, []))


class FakePackages:
    def __init__(self):
        self.payloads = {}          # function id -> bytes | PackageDownloadError
        self.location_errors = set()

    def fetch_package_location(self, function_id):
        if function_id in self.location_errors:
            raise DiscoveryError("ResourceNotFoundException: function gone")
        if function_id not in self.payloads:
            return None
        return PACKAGE_HOST + function_id

    def download_bytes(self, url):
        payload = self.payloads.get(url[len(PACKAGE_HOST):])
        if payload is None:
            raise PackageDownloadError(url, "404 Not Found")
        if isinstance(payload, PackageDownloadError):
            raise payload
        return payload


def build_zip(files) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


def damage_first_member(data: bytes) -> bytes:
    """Flip 20 bytes inside the first member's compressed stream."""
    name_len = int.from_bytes(data[26:28], "little")
    extra_len = int.from_bytes(data[28:30], "little")
    start = 30 + name_len + extra_len + 4
    damaged = bytearray(data)
    for i in range(start, start + 20):
        damaged[i] ^= 0xFF
    return bytes(damaged)


SAMPLE_SOURCE = "".join(f"const v{i} = {i * 7919 % 1009};\n" for i in range(200))


@pytest.fixture
def settings():
    return DiscoverySettings(
        region=REGION,
        profile=None,
        analyze_code=True,
        aws_connect_timeout=1,
        aws_read_timeout=1,
        download_timeout=1,
        max_package_bytes=1024 * 1024,
        max_entry_bytes=64 * 1024,
        max_total_bytes=256 * 1024,
        max_entries=50,
        text_extensions=TEXT_EXTENSIONS,
    )


@pytest.fixture
def make_function():
    def _make(name, **extra):
        descriptor = {
            "FunctionName": name,
            "FunctionArn": f"arn:aws:lambda:{REGION}:{ACCOUNT}:function:{name}",
            "Version": "$LATEST",
            "PackageType": "Zip",
        }
        descriptor.update(extra)
        return descriptor
    return _make


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def packages():
    return FakePackages()
