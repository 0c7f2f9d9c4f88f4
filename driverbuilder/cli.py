"""
Command-line interface for the driverbuilder.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from driverbuilder import __version__
from driverbuilder.common import console, setup_logging
from driverbuilder.config import (
    SUPPORTED_ARCHITECTURES,
    SUPPORTED_TARGETS,
    TARGET_MAPPINGS,
    BuilderConfig,
)
from driverbuilder.exceptions import DriverBuilderError


ARCH_HELP = "Target architecture: " + ", ".join(SUPPORTED_ARCHITECTURES) + " (amd64 and arm64 accepted)"


def print_banner():
    """Print application banner."""
    console.print(Panel.fit(
        f"[bold blue]Driver Builder[/bold blue] v{__version__}\n"
        "[dim]Kernel package resolution for Amazon Linux[/dim]",
        border_style="blue",
    ))


def fail(ctx, error: Exception):
    console.print(f"[red]Error: {error}[/red]")
    if ctx.obj.get("verbose"):
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def main(ctx, verbose: bool, quiet: bool):
    """
    Amazon Linux driver build script generator.

    Finds the kernel and kernel-devel packages for a kernel release and
    renders the script that builds a driver against them.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        setup_logging(level=logging.DEBUG)
    elif quiet:
        setup_logging(level=logging.WARNING)

    if not quiet:
        print_banner()


@main.command()
def targets():
    """List supported targets and the repositories they probe."""
    table = Table(title="Supported targets")
    table.add_column("Target", style="cyan")
    table.add_column("Codec")
    table.add_column("Repositories")

    for target, mapping in TARGET_MAPPINGS.items():
        table.add_row(target.value, mapping.codec, ", ".join(mapping.repositories))

    console.print(table)


@main.command()
@click.option("--target", "-t", required=True, type=click.Choice(SUPPORTED_TARGETS),
              help="Target distribution")
@click.option("--kernel-release", "-k", required=True, help="Kernel release, e.g. 4.14.152-127.182.amzn2.x86_64")
@click.option("--arch", "-a", default="x86_64", help=ARCH_HELP)
@click.pass_context
def urls(ctx, target: str, kernel_release: str, arch: str):
    """
    Print the kernel package URLs for a kernel release.

    Examples:

        driverbuilder urls -t amazonlinux2 -k 4.14.152-127.182.amzn2.x86_64
    """
    from driverbuilder.repository import resolve_kernel_urls

    try:
        config = BuilderConfig.from_env()
        resolved = resolve_kernel_urls(target, kernel_release, arch, config=config)
    except DriverBuilderError as e:
        fail(ctx, e)

    for url in resolved:
        click.echo(url)


@main.command()
@click.option("--config", "-c", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="driverkit-style YAML build config")
@click.option("--target", "-t", type=click.Choice(SUPPORTED_TARGETS), help="Target distribution")
@click.option("--kernel-release", "-k", help="Kernel release")
@click.option("--arch", "-a", default="x86_64", help=ARCH_HELP)
@click.option("--driver-version", default="master", help="Driver source version to download")
@click.option("--module-output", type=click.Path(), help="Build the kernel module into this path")
@click.option("--probe-output", type=click.Path(), help="Build the eBPF probe into this path")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the script to a file")
@click.option("--no-verify", is_flag=True, help="Skip HEAD checks on resolved package URLs")
@click.pass_context
def script(
    ctx,
    config_file: Optional[str],
    target: Optional[str],
    kernel_release: Optional[str],
    arch: str,
    driver_version: str,
    module_output: Optional[str],
    probe_output: Optional[str],
    output: Optional[str],
    no_verify: bool,
):
    """
    Render the driver build script for a kernel.

    Examples:

        # From options
        driverbuilder script -t amazonlinux2 -k 4.14.152-127.182.amzn2.x86_64 --module-output /out/probe.ko

        # From a driverkit config file
        driverbuilder script --config amazonlinux2.yaml -o build.sh
    """
    from pydantic import ValidationError

    from driverbuilder.builder import get_builder
    from driverbuilder.models import BuildConfig

    try:
        config = BuilderConfig.from_env()
        if no_verify:
            config.verify_urls = False
        if config_file:
            build = BuildConfig.from_yaml(config_file)
        else:
            if not target or not kernel_release:
                raise click.UsageError("--target and --kernel-release are required without --config")
            build = BuildConfig(
                target=target,
                kernel_release=kernel_release,
                architecture=arch,
                driver_version=driver_version,
                module_file_path=module_output,
                probe_file_path=probe_output,
            )
        rendered = get_builder(build.target, config).script(build)
    except (DriverBuilderError, ValidationError) as e:
        fail(ctx, e)

    if output:
        Path(output).write_text(rendered)
        console.print(f"[green]Script written to {output}[/green]")
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
