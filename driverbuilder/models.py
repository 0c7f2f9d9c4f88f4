"""
Data models for the driverbuilder using Pydantic for validation.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import re

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from driverbuilder.config import SUPPORTED_ARCHITECTURES, TargetType
from driverbuilder.exceptions import ConfigurationError, InvalidKernelReleaseError


KERNEL_RELEASE_PATTERN = re.compile(
    r"^(?P<fullversion>(?P<version>0|[1-9]\d*)\.(?P<patchlevel>0|[1-9]\d*)[.+]?(?P<sublevel>0|[1-9]\d*)?)"
    r"(?P<fullextraversion>[-.+](?P<extraversion>0|[1-9]\d*)\.?(?P<localversion>.+)?)?$"
)

ARCHITECTURE_ALIASES = {
    "amd64": "x86_64",
    "arm64": "aarch64",
}


class KernelRelease(BaseModel):
    """A kernel release string split into its components."""
    model_config = ConfigDict(frozen=True)

    fullversion: str
    version: str
    patchlevel: str
    sublevel: str = ""
    extraversion: str = ""
    fullextraversion: str = ""

    @classmethod
    def parse(cls, release: str) -> "KernelRelease":
        """Parse a release like '4.14.152-127.182.amzn2.x86_64'."""
        match = KERNEL_RELEASE_PATTERN.match(release.strip())
        if not match:
            raise InvalidKernelReleaseError(release)
        return cls(
            fullversion=match.group("fullversion"),
            version=match.group("version"),
            patchlevel=match.group("patchlevel"),
            sublevel=match.group("sublevel") or "",
            extraversion=match.group("extraversion") or "",
            fullextraversion=match.group("fullextraversion") or "",
        )

    def package_release(self, arch: str) -> str:
        """
        Get the RPM release matching this kernel on an architecture.

        The arch suffix is stripped first, then one leading hyphen,
        so '-127.182.amzn2.x86_64' on x86_64 gives '127.182.amzn2'.
        """
        release = self.fullextraversion
        suffix = f".{arch}"
        if release.endswith(suffix):
            release = release[: -len(suffix)]
        if release.startswith("-"):
            release = release[1:]
        return release

    def __str__(self) -> str:
        return f"{self.fullversion}{self.fullextraversion}"


def normalize_architecture(arch: str) -> str:
    """Map Debian-style architecture names to their RPM equivalent."""
    arch = arch.strip()
    return ARCHITECTURE_ALIASES.get(arch, arch)


class BuildConfig(BaseModel):
    """A request to build a driver for one kernel."""
    target: TargetType
    kernel_release: str
    architecture: str = "x86_64"
    driver_version: str = "master"
    module_file_path: Optional[str] = None
    probe_file_path: Optional[str] = None

    @field_validator("kernel_release")
    @classmethod
    def validate_kernel_release(cls, v: str) -> str:
        """Validate kernel release format."""
        if not KERNEL_RELEASE_PATTERN.match(v.strip()):
            raise ValueError(f"Invalid kernel release: {v}")
        return v.strip()

    @field_validator("architecture")
    @classmethod
    def validate_architecture(cls, v: str) -> str:
        """Validate and normalize the architecture name."""
        arch = normalize_architecture(v)
        if arch not in SUPPORTED_ARCHITECTURES:
            raise ValueError(f"Unsupported architecture: {v}")
        return arch

    @property
    def kernel(self) -> KernelRelease:
        """Get the parsed kernel release."""
        return KernelRelease.parse(self.kernel_release)

    @property
    def build_module(self) -> bool:
        return bool(self.module_file_path)

    @property
    def build_probe(self) -> bool:
        return bool(self.probe_file_path)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "BuildConfig":
        """
        Load a build request from a driverkit-style YAML file.

        Recognized keys: ``target``, ``kernelrelease``, ``architecture``,
        ``driverversion`` and ``output.module`` / ``output.probe``.

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read build config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Build config {path} must be a mapping")

        output = data.get("output") or {}
        values = {
            "target": data.get("target"),
            "kernel_release": data.get("kernelrelease"),
            "architecture": data.get("architecture", "x86_64"),
            "driver_version": data.get("driverversion", "master"),
            "module_file_path": output.get("module"),
            "probe_file_path": output.get("probe"),
        }
        try:
            return cls(**{k: v for k, v in values.items() if v is not None})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid build config {path}: {e}") from e


@dataclass(frozen=True)
class PackageRecord:
    """A row of the package index."""
    name: str
    version: str
    release: str
    arch: str
    location_href: str


@dataclass
class ScriptTemplateData:
    """Values rendered into a build script."""
    driver_build_dir: str
    module_download_url: str
    kernel_download_urls: List[str] = field(default_factory=list)
    build_module: bool = False
    build_probe: bool = False
