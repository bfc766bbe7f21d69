#!/usr/bin/env python3
"""
vdsm-lxc CLI - Main entry point.

Usage:
    vdsm-lxc [OPTIONS] COMMAND [ARGS]...

Prepares an unprivileged Proxmox LXC container to run Virtual DSM
in Docker. Run it on the Proxmox host, not inside the container.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from .. import __version__
from ..config import load_config
from ..operations import OperationReporter
from ..pct_client import PctClient
from ..provision import ProvisionService
from ..provision.patches import VIRTUAL_DSM_PATCHES, PatchResult, apply_patch_set
from .decorators import handle_errors, require_root
from .output import out


app = typer.Typer(
    name="vdsm-lxc",
    help="Prepare an unprivileged Proxmox LXC container for Virtual DSM",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        out.info(f"vdsm-lxc version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every step and external command.",
    ),
) -> None:
    """
    vdsm-lxc - Virtual DSM in unprivileged Proxmox containers.

    Creates the tun, kvm and vhost-net device nodes for a container,
    bind-mounts them in, installs Docker inside the container and builds
    a Virtual DSM image patched to tolerate restricted mknod.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def display_info() -> None:
    out.clear()
    out.info("This script is used to configure prerequisites to run Synology Virtual DSM")
    out.info("in a Docker container inside an unprivileged Proxmox LXC container.")
    out.info("Please run this script on the Proxmox host, not inside the LXC container.\n")


@app.command()
@require_root
@handle_errors
def setup(
    ct_id: Optional[str] = typer.Option(
        None,
        "--ct-id",
        help="LXC container ID (prompted for when omitted)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Don't ask for confirmation",
    ),
    skip_guest: bool = typer.Option(
        False,
        "--skip-guest",
        help="Only prepare the host side; don't install Docker or build the image",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Extra config file, overriding user and system config",
    ),
) -> None:
    """Provision a container for Virtual DSM.

    Stops the container, creates /dev-<CT ID>/{net/tun,kvm,vhost-net}
    owned by the container's mapped root user, adds matching
    lxc.mount.entry lines to /etc/pve/lxc/<CT ID>.conf, starts the
    container again and builds the virtual-dsm Docker image inside it.

    If a host-side step fails, the changes made so far are reverted.
    """
    display_info()

    if not yes and not typer.confirm("Do you want to continue?", default=False):
        out.clear()
        out.info("\nScript aborted. No changes were made.")
        raise typer.Exit(0)

    if ct_id is None:
        ct_id = typer.prompt("Enter the LXC Container ID (CT ID)")

    config = load_config(extra=config_file)
    service = ProvisionService(config, PctClient(), OperationReporter(out.console))
    service.provision(ct_id, guest=not skip_guest)

    out.success("Configuration completed successfully.")
    if not skip_guest:
        out.info(
            f"\nStart the docker image ({config.image_tag}) inside the LXC container "
            "using docker run or docker compose."
        )


@app.command()
@handle_errors
def verify(
    ct_id: str = typer.Argument(..., help="LXC container ID to check"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Extra config file, overriding user and system config",
    ),
) -> None:
    """Check device nodes and mount entries without changing anything."""
    config = load_config(extra=config_file)
    service = ProvisionService(config, PctClient())
    results = service.verify(ct_id)

    table = Table(title=f"Container {ct_id.strip()}")
    table.add_column("Item", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for r in results:
        status = "[green]ok[/green]" if r.ok else "[red]missing[/red]"
        table.add_row(r.item, status, r.detail)
    out.console.print(table)

    if not all(r.ok for r in results):
        raise typer.Exit(1)


@app.command()
@handle_errors
def patch(
    checkout: Path = typer.Argument(..., help="Local virtual-dsm checkout"),
    check: bool = typer.Option(
        False,
        "--check",
        help="Only verify that every anchor is found; don't write",
    ),
) -> None:
    """Apply the restricted-mknod patch set to a local checkout.

    Useful to check a new upstream release before provisioning with it.
    """
    patch_set = VIRTUAL_DSM_PATCHES
    results = apply_patch_set(patch_set, checkout, check_only=check)
    for path, result in results.items():
        if check and result is PatchResult.APPLIED:
            out.info(f"{path}: anchors found")
        else:
            out.info(f"{path}: {result.value}")
    verb = "verified" if check else "applied"
    out.success(f"{patch_set.name} v{patch_set.version} {verb}")


def cli() -> None:
    """CLI entry point for setuptools."""
    app(prog_name="vdsm-lxc")


if __name__ == "__main__":
    cli()
