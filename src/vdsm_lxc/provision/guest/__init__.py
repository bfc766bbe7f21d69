# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Guest setup pipeline: steps run inside the container.

Importing this package registers all steps with the pipeline.
"""

from ...pipeline import Pipeline
from ..contexts import GuestContext

guest_pipeline = Pipeline[GuestContext]("guest")

# Import step modules so their decorators register with the pipeline.
from . import install_docker as _  # noqa: F401, E402
from . import source_checkout as _  # noqa: F401, E402
from . import build_image as _  # noqa: F401, E402
