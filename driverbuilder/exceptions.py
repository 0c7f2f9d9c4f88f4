"""
Error types raised while resolving kernel packages and rendering build scripts.

Every error aborts the whole resolution; none is retried internally.
"""

from typing import Optional


class DriverBuilderError(Exception):
    """Base class for all driverbuilder errors."""


class ConfigurationError(DriverBuilderError):
    """A build setting is missing, invalid or cannot be read."""


class InvalidKernelReleaseError(DriverBuilderError):
    """A kernel release string does not look like a kernel release."""

    def __init__(self, release: str):
        super().__init__(f"Invalid kernel release: {release!r}")
        self.release = release


class UnsupportedTargetError(DriverBuilderError):
    """The requested target is not in the static target tables."""

    def __init__(self, target: str):
        super().__init__(f"Unsupported target: {target}")
        self.target = target


class NetworkError(DriverBuilderError):
    """An HTTP request failed or returned an error status."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        message = f"Request to {url} failed: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason
        self.status_code = status_code


class MirrorNotFoundError(DriverBuilderError):
    """A mirror list answered with an empty first line."""

    def __init__(self, url: str):
        super().__init__(f"Repository not found: empty mirror list at {url}")
        self.url = url


class DecompressionError(DriverBuilderError):
    """A compressed package index is corrupt or truncated."""

    def __init__(self, codec: str, reason: str, url: Optional[str] = None):
        where = f" ({url})" if url else ""
        super().__init__(f"Cannot decompress {codec} data{where}: {reason}")
        self.codec = codec
        self.reason = reason
        self.url = url


class DatabaseError(DriverBuilderError):
    """The package index could not be opened or queried."""

    def __init__(self, reason: str, url: Optional[str] = None):
        where = f" ({url})" if url else ""
        super().__init__(f"Package index query failed{where}: {reason}")
        self.reason = reason
        self.url = url


class PackageCountMismatchError(DriverBuilderError):
    """Resolution did not yield exactly the kernel and kernel-devel packages."""

    def __init__(self, target: str, count: int, expected: int = 2):
        super().__init__(
            f"Target {target} needs to find both kernel and kernel-devel packages: "
            f"expected {expected} URLs, found {count}"
        )
        self.target = target
        self.count = count
        self.expected = expected


class KernelNotFoundError(DriverBuilderError):
    """Resolved package URLs did not answer a HEAD check."""

    def __init__(self, urls):
        super().__init__(f"Kernel not found: unreachable package URLs: {', '.join(urls)}")
        self.urls = list(urls)


class ResolutionCancelledError(DriverBuilderError):
    """The caller cancelled a resolution in progress."""
