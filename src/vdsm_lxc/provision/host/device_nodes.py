# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Host steps: (re)create the staged device nodes."""

from ..constants import REQUIRED_DEVICES
from ..contexts import ProvisionContext
from ..devices import provision_device, set_aside_staging_dir
from . import host_pipeline


@host_pipeline.step(order=200)
def reset_staging_dir(ctx: ProvisionContext) -> None:
    """Move a staging directory left behind by an earlier run aside.

    Stale nodes may carry an old owner or device number, so they are
    always recreated rather than reused.  The old set is only deleted
    once the whole host phase has succeeded.
    """
    _config_path, staging_dir = ctx.target_paths()
    if staging_dir.is_dir():
        ctx.info(f"Removing existing {staging_dir} folder...")
        ctx.staging_backup = set_aside_staging_dir(staging_dir, ctx.journal)


@host_pipeline.step(order=300)
def create_device_nodes(ctx: ProvisionContext) -> None:
    """Create tun, kvm and vhost-net nodes owned by the mapped root user.

    The first failure aborts; later devices are not attempted.
    """
    _config_path, staging_dir = ctx.target_paths()
    for spec in REQUIRED_DEVICES:
        ctx.info(f"Configuring {spec.path}...")
        node = provision_device(
            spec,
            staging_dir,
            ctx.config.idmap_uid,
            ctx.config.idmap_gid,
            ctx.journal,
        )
        ctx.device_nodes.append(node)
        ctx.dim(f"{node} ({spec.major}:{spec.minor})")
