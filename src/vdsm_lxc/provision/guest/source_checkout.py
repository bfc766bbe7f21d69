# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Guest steps: clone the Virtual DSM source and patch its installer scripts."""

from __future__ import annotations

import tempfile
from pathlib import Path

from ..constants import SCRIPT_PERMS
from ..contexts import GuestContext
from ..patches import VIRTUAL_DSM_PATCHES, PatchResult, apply_patch_set
from . import guest_pipeline


@guest_pipeline.step(order=400)
def clone_source(ctx: GuestContext) -> None:
    """Replace any previous checkout with a fresh clone."""
    checkout = ctx.config.guest_checkout
    ctx.info("Cloning virtual-dsm repository...")
    ctx.run("remove previous checkout", "rm", "-rf", checkout)
    ctx.run("clone virtual-dsm", "git", "clone", ctx.config.source_repository, checkout)


@guest_pipeline.step(order=500)
def patch_source(ctx: GuestContext) -> None:
    """Patch the installer scripts to tolerate restricted mknod.

    Files are pulled onto the host, patched there with anchor checks,
    and pushed back.  A missing anchor aborts before the image is built.
    """
    patch_set = VIRTUAL_DSM_PATCHES
    checkout = ctx.config.guest_checkout
    ctx.info("Changing source code to bypass mknod errors...")

    with tempfile.TemporaryDirectory(prefix="vdsm-lxc-") as tmp:
        root = Path(tmp)
        for fp in patch_set.files:
            local = root / fp.path
            local.parent.mkdir(parents=True, exist_ok=True)
            ctx.pull(f"fetch {fp.path}", f"{checkout}/{fp.path}", str(local))

        results = apply_patch_set(patch_set, root)

        for fp in patch_set.files:
            if results[fp.path] is PatchResult.ALREADY_APPLIED:
                ctx.dim(f"{fp.path}: already patched")
                continue
            ctx.push(
                f"update {fp.path}",
                str(root / fp.path),
                f"{checkout}/{fp.path}",
                perms=SCRIPT_PERMS,
            )
            ctx.dim(f"{fp.path}: {patch_set.name} v{patch_set.version} applied")
