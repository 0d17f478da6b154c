"""
boto3-backed collaborators for the discovery driver.

The driver only depends on the three small protocols below, so tests
(and other clouds) can substitute in-memory fakes.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

import boto3
import structlog
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from lambdamap.analysis.archive import download_package
from lambdamap.config import DiscoverySettings
from lambdamap.ir.errors import DiscoveryError

logger = structlog.get_logger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)


@dataclass(frozen=True)
class CallerIdentity:
    principal: str
    account_id: str
    region: str


class IdentityResolver(Protocol):
    def resolve_identity(self) -> CallerIdentity: ...


class FunctionCatalog(Protocol):
    def list_functions(self) -> List[Dict]: ...

    def list_event_source_mappings(self, qualifier: str) -> List[Dict]: ...

    def list_aliases(self, function_name: str) -> List[Dict]: ...


class PackageFetcher(Protocol):
    def fetch_package_location(self, function_id: str) -> Optional[str]: ...

    def download_bytes(self, url: str) -> bytes: ...


def _describe(error: Exception) -> str:
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        code = err.get("Code", "ClientError")
        message = err.get("Message") or str(error)
        return f"{code}: {message}"
    return str(error)


def boto_config(settings: DiscoverySettings) -> BotoConfig:
    # each call is attempted once; timeouts cancel rather than retry
    return BotoConfig(
        region_name=settings.region,
        connect_timeout=settings.aws_connect_timeout,
        read_timeout=settings.aws_read_timeout,
        retries={"total_max_attempts": 1},
    )


class StsIdentityResolver:
    def __init__(self, session: boto3.Session, settings: DiscoverySettings):
        self.session = session
        self.settings = settings

    def resolve_identity(self) -> CallerIdentity:
        try:
            sts = self.session.client("sts", config=boto_config(self.settings))
            identity = sts.get_caller_identity()
        except AWS_ERRORS as e:
            raise DiscoveryError(_describe(e)) from e
        return CallerIdentity(
            principal=identity.get("Arn", "unknown principal"),
            account_id=identity.get("Account", ""),
            region=self.settings.region,
        )


class LambdaFunctionCatalog:
    def __init__(self, session: boto3.Session, settings: DiscoverySettings):
        self.settings = settings
        self.client = session.client("lambda", config=boto_config(settings))

    def _paginate(self, operation: str, result_key: str, **kwargs) -> List[Dict]:
        # pagination ends when the service stops returning NextMarker
        items: List[Dict] = []
        try:
            paginator = self.client.get_paginator(operation)
            for page in paginator.paginate(**kwargs):
                items.extend(page.get(result_key, []) or [])
        except AWS_ERRORS as e:
            raise DiscoveryError(_describe(e)) from e
        return items

    def list_functions(self) -> List[Dict]:
        return self._paginate("list_functions", "Functions")

    def list_event_source_mappings(self, qualifier: str) -> List[Dict]:
        return self._paginate("list_event_source_mappings", "EventSourceMappings", FunctionName=qualifier)

    def list_aliases(self, function_name: str) -> List[Dict]:
        return self._paginate("list_aliases", "Aliases", FunctionName=function_name)

    def fetch_package_location(self, function_id: str) -> Optional[str]:
        try:
            response = self.client.get_function(FunctionName=function_id)
        except AWS_ERRORS as e:
            raise DiscoveryError(_describe(e)) from e
        return (response.get("Code") or {}).get("Location")


class HttpPackageFetcher:
    """Package location via the function catalog, bytes via requests."""

    def __init__(self, catalog: LambdaFunctionCatalog, settings: DiscoverySettings):
        self.catalog = catalog
        self.settings = settings

    def fetch_package_location(self, function_id: str) -> Optional[str]:
        return self.catalog.fetch_package_location(function_id)

    def download_bytes(self, url: str) -> bytes:
        return download_package(url, self.settings)


def create_aws_collaborators(settings: DiscoverySettings):
    try:
        session = boto3.Session(profile_name=settings.profile, region_name=settings.region)
        catalog = LambdaFunctionCatalog(session, settings)
    except AWS_ERRORS as e:
        # e.g. ProfileNotFound
        raise DiscoveryError(_describe(e)) from e
    logger.debug("aws_session_created", region=settings.region, profile=settings.profile)
    return (
        StsIdentityResolver(session, settings),
        catalog,
        HttpPackageFetcher(catalog, settings),
    )
