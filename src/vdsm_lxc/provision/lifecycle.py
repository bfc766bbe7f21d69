# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Bring a container into the run state the next operation needs."""

from __future__ import annotations

from ..operations import OperationError, OperationReporter, UndoJournal
from ..pct_client import PctClient, PctError


def _is_running(pct: PctClient, ct_id: str) -> bool:
    try:
        return pct.is_running(ct_id)
    except PctError as e:
        raise OperationError(f"Failed to query status of LXC container {ct_id}: {e}")


def _start(pct: PctClient, ct_id: str) -> None:
    try:
        pct.start(ct_id)
    except PctError as e:
        raise OperationError(f"Failed to start LXC container {ct_id}: {e}")


def ensure_stopped(
    pct: PctClient,
    ct_id: str,
    journal: UndoJournal | None = None,
    progress: OperationReporter | None = None,
) -> bool:
    """Stop the container if it is running.

    A single attempt; a failing ``pct stop`` is fatal.

    Returns:
        True if the container was running and has been stopped.
    """
    if not _is_running(pct, ct_id):
        return False

    if progress:
        progress.info(f"Stopping running LXC container {ct_id}...")
    try:
        pct.stop(ct_id)
    except PctError as e:
        raise OperationError(f"Failed to stop LXC container {ct_id}: {e}")

    if journal is not None:
        journal.record(f"start LXC container {ct_id}", lambda: _start(pct, ct_id))
    return True


def ensure_started(
    pct: PctClient,
    ct_id: str,
    progress: OperationReporter | None = None,
) -> bool:
    """Start the container unless it is already running.

    Returns:
        True if a start was issued.
    """
    if _is_running(pct, ct_id):
        return False

    if progress:
        progress.info(f"Starting LXC container {ct_id}...")
    _start(pct, ct_id)
    return True
