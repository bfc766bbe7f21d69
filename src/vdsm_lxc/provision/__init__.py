# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container provisioning package: public API re-exports."""

from .service import CheckResult, ProvisionService

__all__ = ["CheckResult", "ProvisionService"]
