"""
Kernel package discovery across Amazon Linux repository generations.
"""

import threading
from typing import List, Optional, Set

import requests

from driverbuilder.common import (
    check_cancelled,
    http_get,
    iter_body,
    logger,
    read_first_line,
)
from driverbuilder.compression import Codec, get_codec
from driverbuilder.config import (
    DEFAULT_CONFIG,
    SUPPORTED_ARCHITECTURES,
    BuilderConfig,
    TargetMapping,
    get_repositories_for_target,
    get_target_mapping,
    validate_target,
)
from driverbuilder.exceptions import (
    ConfigurationError,
    MirrorNotFoundError,
    PackageCountMismatchError,
    UnsupportedTargetError,
)
from driverbuilder.models import KernelRelease, normalize_architecture
from driverbuilder.package_index import PackageIndex


# Every supported layout ships exactly one kernel and one kernel-devel
EXPECTED_PACKAGE_COUNT = 2

BASEARCH_PLACEHOLDER = "$basearch"


class RepositoryResolver:
    """Resolve kernel package URLs for one target."""

    def __init__(
        self,
        target: str,
        config: Optional[BuilderConfig] = None,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        if not validate_target(target):
            raise UnsupportedTargetError(target)
        self.mapping: TargetMapping = get_target_mapping(target)
        self.config = config or DEFAULT_CONFIG
        self.session = session
        self.cancel_event = cancel_event

    @property
    def target(self) -> str:
        return self.mapping.target.value

    @property
    def codec(self) -> Codec:
        return get_codec(self.mapping.codec)

    def repositories(self) -> List[str]:
        """Get the repository generations to probe, in order."""
        return get_repositories_for_target(self.target)

    def resolve_mirror(self, repository: str, arch: str) -> str:
        """
        Get the live repository base URL for a generation.

        Args:
            repository: Repository generation, e.g. "2.0"
            arch: Target architecture

        Returns:
            The first line of the generation's mirror list

        Raises:
            NetworkError: If the mirror list cannot be fetched
            MirrorNotFoundError: If the mirror list is empty
        """
        url = self.mapping.mirror_list_url(repository, arch)
        logger.debug(f"Looking for repo {repository} at {url}")

        with http_get(self._session, url, self.config.network_timeout, stream=True) as response:
            mirror = read_first_line(response)

        if not mirror:
            raise MirrorNotFoundError(url)
        return mirror

    def metadata_url(self, mirror: str, arch: str) -> str:
        """Get the package index URL under a resolved mirror."""
        url = f"{mirror.rstrip('/')}/repodata/primary.sqlite.{self.codec.extension}"
        return url.replace(BASEARCH_PLACEHOLDER, arch)

    def fetch_index(self, url: str) -> bytes:
        """
        Download and decompress a package index.

        Raises:
            NetworkError: If the download fails
            DecompressionError: If the data is corrupt
        """
        logger.debug(f"Downloading {url}")
        with http_get(self._session, url, self.config.network_timeout, stream=True) as response:
            chunks = iter_body(response, url, self.config.chunk_size, self.cancel_event)
            data = self.codec.decompress(chunks, url)
        logger.debug(f"Decompressed {len(data)} bytes from {url}")
        return data

    def query_index(self, data: bytes, url: str, mirror: str, kernel: KernelRelease, arch: str) -> List[str]:
        """Get absolute URLs of the kernel packages listed in an index."""
        base = mirror.rstrip("/").replace(BASEARCH_PLACEHOLDER, arch)
        with PackageIndex(data, prefix=self.target, temp_dir=self.config.temp_dir, url=url) as index:
            records = index.find_kernel_packages(kernel, arch)

        for record in records:
            logger.debug(f"Found {record.name}-{record.version}-{record.release}.{record.arch}")
        return [f"{base}/{record.location_href.lstrip('/')}" for record in records]

    def resolve_kernel_urls(self, kernel: KernelRelease, arch: str) -> List[str]:
        """
        Resolve the kernel and kernel-devel package URLs for a release.

        Generations are probed strictly in order; a package index reached
        through more than one generation is only processed once.

        Args:
            kernel: Requested kernel release
            arch: Target architecture

        Returns:
            Exactly two URLs, in probe order

        Raises:
            ConfigurationError: If the architecture is not supported
            PackageCountMismatchError: If anything but two packages matched
            ResolutionCancelledError: If the cancel event was set
        """
        arch = normalize_architecture(arch)
        if arch not in SUPPORTED_ARCHITECTURES:
            raise ConfigurationError(f"Unsupported architecture: {arch}")

        owns_session = self.session is None
        if owns_session:
            self.session = requests.Session()

        urls: List[str] = []
        visited: Set[str] = set()
        try:
            for repository in self.repositories():
                check_cancelled(self.cancel_event)

                mirror = self.resolve_mirror(repository, arch)
                url = self.metadata_url(mirror, arch)
                if url in visited:
                    logger.debug(f"Skipping {url}: already processed")
                    continue
                visited.add(url)

                data = self.fetch_index(url)
                found = self.query_index(data, url, mirror, kernel, arch)
                logger.info(f"{self.target} {repository}: {len(found)} kernel package(s)")
                urls.extend(found)
        finally:
            if owns_session:
                self.session.close()
                self.session = None

        if len(urls) != EXPECTED_PACKAGE_COUNT:
            raise PackageCountMismatchError(self.target, len(urls), EXPECTED_PACKAGE_COUNT)

        logger.info(f"Resolved {len(urls)} package URLs for {kernel} on {self.target}")
        return urls

    @property
    def _session(self) -> requests.Session:
        if self.session is None:
            self.session = requests.Session()
        return self.session


def resolve_kernel_urls(
    target: str,
    kernel_release: str,
    arch: str,
    config: Optional[BuilderConfig] = None,
    session: Optional[requests.Session] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[str]:
    """Resolve the kernel package URLs for a release string."""
    kernel = KernelRelease.parse(kernel_release)
    resolver = RepositoryResolver(target, config=config, session=session, cancel_event=cancel_event)
    return resolver.resolve_kernel_urls(kernel, arch)
