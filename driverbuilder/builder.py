"""
Build script generation for Amazon Linux targets.
"""

import threading
from dataclasses import asdict
from typing import Dict, Optional, Type

import requests
from jinja2 import Environment, StrictUndefined

from driverbuilder.common import filter_reachable_urls, logger
from driverbuilder.config import DEFAULT_CONFIG, BuilderConfig, TargetType, validate_target
from driverbuilder.exceptions import KernelNotFoundError, UnsupportedTargetError
from driverbuilder.models import BuildConfig, ScriptTemplateData
from driverbuilder.repository import RepositoryResolver


AMAZONLINUX_TEMPLATE = """\
#!/bin/bash
# {{ preamble }}
set -xeuo pipefail

rm -Rf {{ driver_build_dir }}
mkdir {{ driver_build_dir }}
rm -Rf /tmp/module-download
mkdir /tmp/module-download

curl --silent -SL {{ module_download_url }} | tar -xzf - -C /tmp/module-download
mv /tmp/module-download/*/driver/* {{ driver_build_dir }}

# Fetch the kernel
rm -Rf /tmp/kernel-download
mkdir /tmp/kernel-download
cd /tmp/kernel-download
{% for url in kernel_download_urls %}
curl --silent -o kernel.rpm -SL {{ url }}
rpm2cpio kernel.rpm | cpio --extract --make-directories
rm -f kernel.rpm
{% endfor %}
rm -Rf /tmp/kernel
mkdir -p /tmp/kernel
mv usr/src/kernels/*/* /tmp/kernel
{% if build_module %}

# Build the kernel module
cd {{ driver_build_dir }}
make KERNELDIR=/tmp/kernel
strip -g *.ko
{% endif %}
{% if build_probe %}

# Build the eBPF probe
cd {{ driver_build_dir }}/bpf
make KERNELDIR=/tmp/kernel
{% endif %}
"""

_ENV = Environment(
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    autoescape=False,
)

SCRIPT_TEMPLATE = _ENV.from_string(AMAZONLINUX_TEMPLATE)


class Builder:
    """Base class for per-target script builders."""

    target: TargetType
    preamble = ""

    def __init__(self, config: Optional[BuilderConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def render(self, data: ScriptTemplateData) -> str:
        """Render the build script for already resolved inputs."""
        return SCRIPT_TEMPLATE.render(preamble=self.preamble, **asdict(data))

    def script(
        self,
        build: BuildConfig,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Compile the script to build the kernel module and/or the eBPF probe.

        Args:
            build: Build request
            session: HTTP session for repository access
            cancel_event: Set to stop the resolution early

        Returns:
            The rendered script
        """
        kernel = build.kernel
        resolver = RepositoryResolver(
            self.target.value,
            config=self.config,
            session=session,
            cancel_event=cancel_event,
        )
        urls = resolver.resolve_kernel_urls(kernel, build.architecture)

        if self.config.verify_urls:
            reachable = filter_reachable_urls(urls, session=session, timeout=self.config.network_timeout)
            # Both packages must be reachable
            missing = [url for url in urls if url not in reachable]
            if missing:
                raise KernelNotFoundError(missing)

        data = ScriptTemplateData(
            driver_build_dir=self.config.driver_directory,
            module_download_url=self.config.module_download_url(build.driver_version),
            kernel_download_urls=urls,
            build_module=build.build_module,
            build_probe=build.build_probe,
        )
        logger.debug(f"Rendering {self.target.value} script for {kernel}")
        return self.render(data)


class AmazonLinux(Builder):
    target = TargetType.AMAZONLINUX
    preamble = "Amazon Linux AMI"


class AmazonLinux2(Builder):
    target = TargetType.AMAZONLINUX2
    preamble = "Amazon Linux 2"


BUILDERS: Dict[TargetType, Type[Builder]] = {
    TargetType.AMAZONLINUX: AmazonLinux,
    TargetType.AMAZONLINUX2: AmazonLinux2,
}


def get_builder(target: str, config: Optional[BuilderConfig] = None) -> Builder:
    """
    Get the builder for a target.

    Raises:
        UnsupportedTargetError: If the target has no builder
    """
    if not validate_target(target):
        raise UnsupportedTargetError(target)
    return BUILDERS[TargetType(target)](config)


def render_script(target: str, data: ScriptTemplateData) -> str:
    """Render a build script for a target."""
    return get_builder(target).render(data)
