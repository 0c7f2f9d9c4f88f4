"""
Driverbuilder - kernel package resolution for Amazon Linux driver builds.

This package provides tools for:
- Discovering Amazon Linux repository mirrors across release generations
- Downloading and querying primary.sqlite package indexes
- Resolving kernel and kernel-devel download URLs for a kernel release
- Rendering the shell script that builds a kernel module or eBPF probe
"""

__version__ = "1.0.0"

from driverbuilder.config import BuilderConfig, SUPPORTED_TARGETS, TargetType
from driverbuilder.exceptions import (
    DatabaseError,
    DecompressionError,
    DriverBuilderError,
    MirrorNotFoundError,
    NetworkError,
    PackageCountMismatchError,
    UnsupportedTargetError,
)
from driverbuilder.models import BuildConfig, KernelRelease, ScriptTemplateData

__all__ = [
    "__version__",
    "BuilderConfig",
    "SUPPORTED_TARGETS",
    "TargetType",
    "BuildConfig",
    "KernelRelease",
    "ScriptTemplateData",
    "DriverBuilderError",
    "NetworkError",
    "MirrorNotFoundError",
    "DecompressionError",
    "DatabaseError",
    "PackageCountMismatchError",
    "UnsupportedTargetError",
]
