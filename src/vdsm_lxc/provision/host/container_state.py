# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Host steps: stop the container before changes, start it afterwards."""

from ..contexts import ProvisionContext
from ..lifecycle import ensure_started, ensure_stopped
from . import host_pipeline


@host_pipeline.step(order=100)
def stop_container(ctx: ProvisionContext) -> None:
    """Stop the container so its config and mounts can change."""
    ctx.was_running = ensure_stopped(ctx.pct, ctx.ct_id, ctx.journal, ctx.progress)


@host_pipeline.step(order=900)
def start_container(ctx: ProvisionContext) -> None:
    """Start the container with the new mounts in place."""
    ensure_started(ctx.pct, ctx.ct_id, ctx.progress)
