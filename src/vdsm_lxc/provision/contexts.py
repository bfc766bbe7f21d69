# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Context dataclasses passed through pipeline steps."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from ..config import ProvisionConfig
from ..operations import CommandError, OperationError, OperationReporter, UndoJournal
from ..pct_client import PctClient, PctError
from .constants import GUEST_ENV


@dataclass
class ProvisionContext:
    """Context passed through the host provisioning pipeline.

    Steps record the inverse of every change in ``journal`` so a failed
    run can be unwound.  Steps should guard their own preconditions.
    """

    ct_id: str
    config: ProvisionConfig
    pct: PctClient
    journal: UndoJournal
    progress: OperationReporter | None

    # Filled in by pipeline steps
    config_path: Path | None = None
    staging_dir: Path | None = None
    staging_backup: Path | None = None
    was_running: bool = False
    device_nodes: list[Path] = field(default_factory=lambda: list[Path]())
    added_lines: list[str] = field(default_factory=lambda: list[str]())

    def target_paths(self) -> tuple[Path, Path]:
        """The container's config file and staging directory."""
        if self.config_path is None or self.staging_dir is None:
            raise OperationError(f"Target of LXC container {self.ct_id} has not been resolved")
        return self.config_path, self.staging_dir

    def info(self, msg: str) -> None:
        if self.progress:
            self.progress.info(msg)

    def dim(self, msg: str) -> None:
        if self.progress:
            self.progress.dim(msg)

    def warning(self, msg: str) -> None:
        if self.progress:
            self.progress.warning(msg)


@dataclass
class GuestContext:
    """Context passed through the guest setup pipeline.

    ``env`` is handed to every command run inside the container; no step
    relies on the container shell's own environment or working directory.
    """

    ct_id: str
    config: ProvisionConfig
    pct: PctClient
    progress: OperationReporter | None
    env: dict[str, str] = field(default_factory=lambda: dict(GUEST_ENV))

    def info(self, msg: str) -> None:
        if self.progress:
            self.progress.info(msg)

    def dim(self, msg: str) -> None:
        if self.progress:
            self.progress.dim(msg)

    def run(self, what: str, *argv: str) -> subprocess.CompletedProcess[str]:
        """Run *argv* in the container, raising :class:`CommandError` on failure."""
        try:
            return self.pct.exec(self.ct_id, argv, env=self.env)
        except PctError as e:
            raise CommandError(f"Failed to {what}: {e}", e.returncode, e.output)

    def push(self, what: str, local_path: str, guest_path: str, perms: str | None = None) -> None:
        try:
            self.pct.push(self.ct_id, local_path, guest_path, perms=perms)
        except PctError as e:
            raise CommandError(f"Failed to {what}: {e}", e.returncode, e.output)

    def pull(self, what: str, guest_path: str, local_path: str) -> None:
        try:
            self.pct.pull(self.ct_id, guest_path, local_path)
        except PctError as e:
            raise CommandError(f"Failed to {what}: {e}", e.returncode, e.output)
