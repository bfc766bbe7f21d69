# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Guest steps: install git and Docker from Docker's apt repository."""

from __future__ import annotations

import os
import tempfile

from ..constants import (
    APT_SOURCE_PERMS,
    DOCKER_KEYRING,
    DOCKER_KEYRING_DIR,
    DOCKER_PACKAGES,
    DOCKER_SOURCE_LIST,
    GUEST_PREREQUISITES,
)
from ..contexts import GuestContext
from . import guest_pipeline


def docker_source_line(apt_url: str, arch: str, codename: str) -> str:
    """Render the apt source entry for Docker's repository."""
    return f"deb [arch={arch} signed-by={DOCKER_KEYRING}] {apt_url} {codename} stable\n"


@guest_pipeline.step(order=100)
def install_prerequisites(ctx: GuestContext) -> None:
    """Install git and the tools needed to add Docker's apt repository."""
    ctx.info("Installing Docker prerequisites...")
    ctx.run("update package lists", "apt-get", "update")
    ctx.run("install prerequisites", "apt-get", "install", "-y", *GUEST_PREREQUISITES)


@guest_pipeline.step(order=200)
def add_docker_repository(ctx: GuestContext) -> None:
    """Install Docker's signing key and apt source list."""
    ctx.dim("Adding the Docker repository to apt sources")
    ctx.run("create keyring directory", "install", "-m", "0755", "-d", DOCKER_KEYRING_DIR)
    ctx.run(
        "fetch Docker signing key",
        "bash", "-c",
        f"set -euo pipefail; curl -fsSL {ctx.config.docker_apt_url}/gpg"
        f" | gpg --yes --dearmor -o {DOCKER_KEYRING}",
    )
    ctx.run("make keyring readable", "chmod", "a+r", DOCKER_KEYRING)

    arch = ctx.run("detect architecture", "dpkg", "--print-architecture").stdout.strip()
    codename = ctx.run(
        "detect release codename",
        "sh", "-c", '. /etc/os-release && echo "$VERSION_CODENAME"',
    ).stdout.strip()

    content = docker_source_line(ctx.config.docker_apt_url, arch, codename)
    fd, local = tempfile.mkstemp(prefix="vdsm-lxc-", suffix=".list")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        ctx.push("install Docker apt source", local, DOCKER_SOURCE_LIST, perms=APT_SOURCE_PERMS)
    finally:
        os.unlink(local)


@guest_pipeline.step(order=300)
def install_docker_packages(ctx: GuestContext) -> None:
    """Install the Docker engine, CLI and plugins."""
    ctx.info("Installing Docker...")
    ctx.run("update package lists", "apt-get", "update")
    ctx.run("install Docker", "apt-get", "install", "-y", *DOCKER_PACKAGES)
