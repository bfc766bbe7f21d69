# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Host step: bind-mount the staged nodes into the container."""

from ..constants import REQUIRED_DEVICES
from ..contexts import ProvisionContext
from ..lxc_config import device_mount_lines, ensure_config_lines
from . import host_pipeline


@host_pipeline.step(order=400)
def add_mount_entries(ctx: ProvisionContext) -> None:
    """Append any missing lxc.mount.entry line to the container config."""
    config_path, staging_dir = ctx.target_paths()
    ctx.info(f"Checking and adding configuration to {config_path}...")
    lines = device_mount_lines(staging_dir, REQUIRED_DEVICES)
    ctx.added_lines = ensure_config_lines(config_path, lines, ctx.journal)
    if ctx.added_lines:
        for line in ctx.added_lines:
            ctx.dim(f"Added: {line}")
    else:
        ctx.dim("Mount entries already present")
