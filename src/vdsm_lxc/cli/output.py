# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Console output helpers for the CLI."""

from __future__ import annotations

from rich.console import Console


class Output:
    """Styled messages on stdout (errors on stderr)."""

    def __init__(self) -> None:
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def info(self, msg: str) -> None:
        self.console.print(msg)

    def success(self, msg: str) -> None:
        self.console.print(f"[bold green]✓[/bold green] {msg}")

    def dim(self, msg: str) -> None:
        self.console.print(f"[dim]{msg}[/dim]")

    def warning(self, msg: str) -> None:
        self.err_console.print(f"[bold yellow]Warning:[/bold yellow] {msg}")

    def error(self, msg: str) -> None:
        self.err_console.print(f"[bold red]Error:[/bold red] {msg}")

    def hint(self, msg: str) -> None:
        self.err_console.print(f"[dim]Hint:[/dim] {msg}")

    def clear(self) -> None:
        if self.console.is_terminal:
            self.console.clear()


out = Output()
