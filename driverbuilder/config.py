"""
Configuration constants and target repository mappings for the driverbuilder.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
import os
import tempfile

from driverbuilder.exceptions import ConfigurationError


class TargetType(str, Enum):
    """Supported Amazon Linux flavors."""
    AMAZONLINUX = "amazonlinux"
    AMAZONLINUX2 = "amazonlinux2"


@dataclass
class TargetMapping:
    """Mapping between a target and the layout of its package repositories."""
    target: TargetType
    base_url_template: str
    codec: str
    repositories: List[str]

    def base_url(self, repository: str, arch: str) -> str:
        """Get the repository root URL that serves ``mirror.list``."""
        return self.base_url_template.format(repo=repository, arch=arch)

    def mirror_list_url(self, repository: str, arch: str) -> str:
        """Get the mirror list URL for a repository generation."""
        return f"{self.base_url(repository, arch)}/mirror.list"


# Probe order matters: resolved URLs are emitted in this order
TARGET_MAPPINGS: Dict[TargetType, TargetMapping] = {
    TargetType.AMAZONLINUX: TargetMapping(
        target=TargetType.AMAZONLINUX,
        base_url_template="http://repo.us-east-1.amazonaws.com/{repo}",
        codec="bzip2",
        repositories=[
            "latest/updates",
            "latest/main",
            "2017.03/updates",
            "2017.03/main",
            "2017.09/updates",
            "2017.09/main",
            "2018.03/updates",
            "2018.03/main",
        ],
    ),
    TargetType.AMAZONLINUX2: TargetMapping(
        target=TargetType.AMAZONLINUX2,
        base_url_template="http://amazonlinux.us-east-1.amazonaws.com/2/core/{repo}/{arch}",
        codec="gzip",
        repositories=[
            "2.0",
            "latest",
        ],
    ),
}

SUPPORTED_TARGETS = [t.value for t in TARGET_MAPPINGS]

SUPPORTED_ARCHITECTURES = ["x86_64", "aarch64"]


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BuilderConfig:
    """Global configuration for package resolution and script generation."""

    # Network settings
    network_timeout: int = 30
    chunk_size: int = 64 * 1024

    # Scratch space for decompressed package indexes
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    # Build script settings
    driver_directory: str = "/tmp/driver"
    download_base_url: str = "https://github.com/draios/sysdig/archive"

    # HEAD-check resolved package URLs before rendering
    verify_urls: bool = True

    @classmethod
    def from_env(cls) -> "BuilderConfig":
        """
        Create configuration from environment variables.

        Raises:
            ConfigurationError: If DRIVERBUILDER_TIMEOUT is not a positive integer
        """
        timeout = os.getenv("DRIVERBUILDER_TIMEOUT", "30")
        try:
            network_timeout = int(timeout)
        except ValueError:
            raise ConfigurationError(f"DRIVERBUILDER_TIMEOUT must be an integer, got {timeout!r}") from None
        if network_timeout <= 0:
            raise ConfigurationError(f"DRIVERBUILDER_TIMEOUT must be positive, got {network_timeout}")

        return cls(
            network_timeout=network_timeout,
            temp_dir=Path(os.getenv("DRIVERBUILDER_TEMP_DIR", tempfile.gettempdir())),
            driver_directory=os.getenv("DRIVERBUILDER_DRIVER_DIR", "/tmp/driver"),
            download_base_url=os.getenv(
                "DRIVERBUILDER_DOWNLOAD_BASE_URL",
                "https://github.com/draios/sysdig/archive",
            ),
            verify_urls=_env_flag("DRIVERBUILDER_VERIFY_URLS", True),
        )

    def module_download_url(self, driver_version: str) -> str:
        """Get the driver source tarball URL for a driver version."""
        return f"{self.download_base_url.rstrip('/')}/{driver_version}.tar.gz"


# Default global configuration instance
DEFAULT_CONFIG = BuilderConfig()


def get_target_mapping(target: str) -> Optional[TargetMapping]:
    """Get the repository mapping for a target, if supported."""
    try:
        return TARGET_MAPPINGS.get(TargetType(target))
    except ValueError:
        return None


def get_repositories_for_target(target: str) -> List[str]:
    """Get the ordered repository generations probed for a target."""
    mapping = get_target_mapping(target)
    return list(mapping.repositories) if mapping else []


def validate_target(target: str) -> bool:
    """Check if a target is supported."""
    return target in SUPPORTED_TARGETS
