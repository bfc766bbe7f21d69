# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Host steps: validate the container ID and locate its config file."""

from ...operations import PreconditionError
from ..constants import CT_ID_PATTERN
from ..contexts import ProvisionContext
from . import host_pipeline


@host_pipeline.step(order=-500)
def validate_ct_id(ctx: ProvisionContext) -> None:
    """Reject anything that isn't a plain non-empty decimal ID."""
    if not CT_ID_PATTERN.match(ctx.ct_id):
        raise PreconditionError(
            "Invalid LXC Container ID. Please enter a numeric value."
        )


@host_pipeline.step(order=-400)
def require_config_file(ctx: ProvisionContext) -> None:
    """Check the container's config file exists before touching anything."""
    config_path = ctx.config.container_config_path(ctx.ct_id)
    if not config_path.is_file():
        raise PreconditionError(f"Configuration file {config_path} does not exist.")
    ctx.config_path = config_path
    ctx.staging_dir = ctx.config.staging_path(ctx.ct_id)
