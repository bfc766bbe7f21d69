# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Provision an unprivileged Proxmox LXC container for Virtual DSM."""

__version__ = "0.3.0"
