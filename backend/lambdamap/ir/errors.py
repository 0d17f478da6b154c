class LambdaMapError(Exception):
    """Base class for errors raised by the topology engine."""


class InvalidNodeError(LambdaMapError):
    """Raised when a node candidate carries no id."""


class PackageDownloadError(LambdaMapError):
    def __init__(self, url: str, reason: str):
        super().__init__(reason)
        self.url = url
        self.reason = reason


class PackageTooLargeError(PackageDownloadError):
    def __init__(self, url: str, limit: int):
        super().__init__(url, f"package exceeds {limit} bytes")
        self.limit = limit


class ArchiveError(LambdaMapError):
    """Raised when a deployment package cannot be opened as a zip archive."""


class DiscoveryError(LambdaMapError):
    """Raised by collaborators when a fatal discovery step fails."""
