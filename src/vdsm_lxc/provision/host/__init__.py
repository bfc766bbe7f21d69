# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Host provisioning pipeline: steps run on the Proxmox host.

Importing this package registers all steps with the pipeline.
"""

from ...pipeline import Pipeline
from ..contexts import ProvisionContext

host_pipeline = Pipeline[ProvisionContext]("host")

# Import step modules so their decorators register with the pipeline.
from . import resolve_target as _  # noqa: F401, E402
from . import container_state as _  # noqa: F401, E402
from . import device_nodes as _  # noqa: F401, E402
from . import mount_entries as _  # noqa: F401, E402
