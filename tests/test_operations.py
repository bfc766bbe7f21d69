# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for the undo journal."""

from __future__ import annotations

from vdsm_lxc.operations import OperationError, UndoJournal


def test_unwind_runs_newest_first() -> None:
    journal = UndoJournal()
    order: list[str] = []
    journal.record("a", lambda: order.append("a"))
    journal.record("b", lambda: order.append("b"))
    journal.record("c", lambda: order.append("c"))

    assert journal.unwind() == []
    assert order == ["c", "b", "a"]
    assert len(journal) == 0


def test_failed_undo_is_reported_and_rest_still_runs() -> None:
    journal = UndoJournal()
    order: list[str] = []

    def broken() -> None:
        raise OSError("read-only file system")

    def refused() -> None:
        raise OperationError("pct start failed")

    journal.record("first", lambda: order.append("first"))
    journal.record("broken", broken)
    journal.record("refused", refused)

    assert journal.unwind() == ["refused", "broken"]
    assert order == ["first"]


def test_commit_discards_actions() -> None:
    journal = UndoJournal()
    order: list[str] = []
    journal.record("a", lambda: order.append("a"))
    journal.commit()

    assert journal.unwind() == []
    assert order == []
