"""
Deployment package download and text extraction.

Packages are fetched from the pre-signed Code.Location URL and opened in
memory. Only text-like members survive extraction; everything else is
skipped silently. A member whose compressed data is damaged makes the
whole package unreadable (ArchiveError).
"""

import io
import posixpath
import time
import zipfile
import zlib
from dataclasses import dataclass
from typing import List

import requests
import structlog

from lambdamap.config import DiscoverySettings
from lambdamap.ir.errors import ArchiveError, PackageDownloadError, PackageTooLargeError

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024
BINARY_SNIFF_BYTES = 1024

OS_METADATA_PREFIXES = ("__MACOSX/",)
OS_METADATA_NAMES = {".DS_Store", "Thumbs.db"}


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    content: str


def download_package(url: str, settings: DiscoverySettings) -> bytes:
    """
    Download a package, refusing anything above the size ceiling.
    Oversized packages are rejected, never truncated. download_timeout
    bounds both each socket read and the whole transfer.
    """
    limit = settings.max_package_bytes
    deadline = time.monotonic() + settings.download_timeout
    try:
        with requests.get(url, stream=True, timeout=settings.download_timeout) as response:
            response.raise_for_status()

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > limit:
                raise PackageTooLargeError(url, limit)

            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                buffer.extend(chunk)
                if len(buffer) > limit:
                    raise PackageTooLargeError(url, limit)
                if time.monotonic() > deadline:
                    raise PackageDownloadError(url, f"timed out after {settings.download_timeout}s")
    except requests.Timeout as e:
        raise PackageDownloadError(url, f"timed out after {settings.download_timeout}s") from e
    except requests.RequestException as e:
        raise PackageDownloadError(url, str(e)) from e

    logger.debug("package_downloaded", size=len(buffer))
    return bytes(buffer)


def _is_os_metadata(name: str) -> bool:
    if name.startswith(OS_METADATA_PREFIXES):
        return True
    return posixpath.basename(name) in OS_METADATA_NAMES


def _has_text_extension(name: str, settings: DiscoverySettings) -> bool:
    base = posixpath.basename(name).lower()
    if base in settings.text_extensions:  # dotfiles such as ".env"
        return True
    _, ext = posixpath.splitext(base)
    return ext in settings.text_extensions


def extract_text_entries(data: bytes, settings: DiscoverySettings) -> List[ArchiveEntry]:
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveError(f"unable to open package: {e}") from e

    entries: List[ArchiveEntry] = []
    total = 0

    with archive:
        for info in archive.infolist():
            if len(entries) >= settings.max_entries:
                break
            if info.is_dir() or _is_os_metadata(info.filename):
                continue
            if not _has_text_extension(info.filename, settings):
                continue
            if info.file_size > settings.max_entry_bytes:
                continue
            if total + info.file_size > settings.max_total_bytes:
                continue

            try:
                raw = archive.read(info)
            except (RuntimeError, NotImplementedError) as e:
                # encrypted member or unsupported compression method
                logger.debug("archive_member_unreadable", path=info.filename, error=str(e))
                continue
            except (zipfile.BadZipFile, zlib.error, EOFError, OSError) as e:
                raise ArchiveError(f"corrupt member {info.filename}: {e}") from e

            if b"\x00" in raw[:BINARY_SNIFF_BYTES]:
                continue

            try:
                content = raw.decode("utf-8")
            except UnicodeDecodeError:
                continue

            total += len(raw)
            entries.append(ArchiveEntry(path=info.filename, content=content))

    return entries
