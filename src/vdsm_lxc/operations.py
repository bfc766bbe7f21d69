# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Operation errors, progress reporting, and the undo journal.

Every fatal condition during provisioning is an :class:`OperationError`.
Steps raise it (or a subclass) and the CLI turns it into a message and
exit status 1.

Host-side steps record the inverse of each change they make in an
:class:`UndoJournal`.  When a later step fails, the journal is unwound
in reverse order so a failed run does not leave half-provisioned device
nodes or config lines behind.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from rich.console import Console

logger = logging.getLogger(__name__)


class OperationError(Exception):
    """A fatal error that aborts the current run."""


class PreconditionError(OperationError):
    """The run cannot start: not root, bad container ID, missing config."""


class CommandError(OperationError):
    """An external command exited with a non-zero status."""

    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class OperationReporter:
    """Human-readable progress for a running operation.

    Messages go to the Rich console and, at matching levels, to the
    module logger so ``--verbose`` runs keep a full trace.
    """

    def __init__(self, console: Console | None = None, quiet: bool = False):
        self.console = console or Console(highlight=False)
        self.quiet = quiet

    def info(self, msg: str) -> None:
        logger.info(msg)
        if not self.quiet:
            self.console.print(f"[bold blue]::[/bold blue] {msg}")

    def dim(self, msg: str) -> None:
        logger.debug(msg)
        if not self.quiet:
            self.console.print(f"   [dim]{msg}[/dim]")

    def warning(self, msg: str) -> None:
        logger.warning(msg)
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {msg}")

    def success(self, msg: str) -> None:
        logger.info(msg)
        if not self.quiet:
            self.console.print(f"[bold green]✓[/bold green] {msg}")


@dataclass
class UndoAction:
    description: str
    undo: Callable[[], None]


class UndoJournal:
    """Inverse actions of completed host-side changes.

    Steps call :meth:`record` right after a change succeeds.  On failure
    the caller runs :meth:`unwind`; on success it calls :meth:`commit`
    so nothing is undone.
    """

    def __init__(self) -> None:
        self._actions: list[UndoAction] = []

    def record(self, description: str, undo: Callable[[], None]) -> None:
        self._actions.append(UndoAction(description, undo))

    def commit(self) -> None:
        self._actions.clear()

    def unwind(self, progress: OperationReporter | None = None) -> list[str]:
        """Run recorded undo actions, newest first.

        An undo action that fails is reported and skipped; the remaining
        actions still run.

        Returns:
            Descriptions of the undo actions that failed.
        """
        failed: list[str] = []
        while self._actions:
            action = self._actions.pop()
            if progress:
                progress.dim(f"Undo: {action.description}")
            try:
                action.undo()
            except (OSError, OperationError) as e:
                logger.warning("Undo failed: %s: %s", action.description, e)
                if progress:
                    progress.warning(f"Could not undo '{action.description}': {e}")
                failed.append(action.description)
        return failed

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self):
        return iter(list(self._actions))
