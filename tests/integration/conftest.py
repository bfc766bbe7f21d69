# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration for vdsm-lxc integration tests.

These run ``vdsm-lxc`` on a real Proxmox host.  Set
``VDSM_LXC_TEST_HOST`` to the host (``localhost`` to run in place) and
``VDSM_LXC_TEST_CT`` to a disposable unprivileged container ID.
"""

from __future__ import annotations

import os
import subprocess

import pytest

# ---------------------------------------------------------------------------
# Host configuration
# ---------------------------------------------------------------------------

TEST_HOST = os.environ.get("VDSM_LXC_TEST_HOST", "")
TEST_CT = os.environ.get("VDSM_LXC_TEST_CT", "")
HOST_EXEC_MODE = os.environ.get("VDSM_LXC_HOST_EXEC_MODE", "auto")
SSH_OPTS = [
    "-o", "ConnectTimeout=5",
    "-o", "StrictHostKeyChecking=no",
    "-o", "LogLevel=ERROR",
]


def _is_local_target() -> bool:
    return TEST_HOST in {"localhost", "127.0.0.1", "::1"}


def _resolve_exec_mode() -> str:
    if HOST_EXEC_MODE == "auto":
        return "local" if _is_local_target() else "ssh"
    if HOST_EXEC_MODE in {"local", "ssh"}:
        return HOST_EXEC_MODE
    raise RuntimeError(
        f"Invalid VDSM_LXC_HOST_EXEC_MODE={HOST_EXEC_MODE!r} (expected auto|local|ssh)"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip everything here unless a test host is configured."""
    if TEST_HOST and TEST_CT:
        return
    skip = pytest.mark.skip(reason="VDSM_LXC_TEST_HOST and VDSM_LXC_TEST_CT not set")
    here = os.path.dirname(__file__)
    for item in items:
        if str(item.path).startswith(here):
            item.add_marker(skip)


def run_on_host(*cmd: str, timeout: float = 600) -> subprocess.CompletedProcess[str]:
    """Run a command on the test host and return the finished process."""
    if _resolve_exec_mode() == "local":
        full_cmd = [*cmd]
    else:
        full_cmd = ["ssh", *SSH_OPTS, TEST_HOST, *cmd]
    return subprocess.run(
        full_cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


@pytest.fixture
def ct_id() -> str:
    return TEST_CT
