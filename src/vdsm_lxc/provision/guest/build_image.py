# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Guest step: build the Virtual DSM Docker image."""

from ..contexts import GuestContext
from . import guest_pipeline


@guest_pipeline.step(order=600)
def build_image(ctx: GuestContext) -> None:
    """Build the image from the patched checkout."""
    ctx.info("Building Docker image (this may take a while)...")
    ctx.run(
        "build Docker image",
        "docker", "build", "-t", ctx.config.image_tag, ctx.config.guest_checkout,
    )
