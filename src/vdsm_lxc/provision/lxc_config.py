# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Idempotent line patching of LXC container config files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..operations import OperationError, UndoJournal
from .constants import MOUNT_ENTRY_TEMPLATE, DeviceSpec

logger = logging.getLogger(__name__)


def mount_entry_line(host_path: str | Path, container_path: str) -> str:
    """Render an ``lxc.mount.entry`` bind line for a single file.

    Args:
        host_path: Absolute path on the host.
        container_path: Path relative to the container root (no leading ``/``).
    """
    return MOUNT_ENTRY_TEMPLATE.format(host=host_path, container=container_path.lstrip("/"))


def device_mount_lines(staging_dir: Path, devices: Iterable[DeviceSpec]) -> list[str]:
    """Mount lines binding each staged node onto ``dev/<path>`` in the container."""
    return [
        mount_entry_line(staging_dir / spec.path, f"dev/{spec.path}")
        for spec in devices
    ]


def _normalize(line: str) -> str:
    return " ".join(line.split())


def line_present(content: str, line: str) -> bool:
    """Literal substring match against each existing line (``grep -F``)."""
    return any(line in existing for existing in content.splitlines())


def ensure_config_lines(
    path: Path,
    lines: Iterable[str],
    journal: UndoJournal | None = None,
) -> list[str]:
    """Append every line of *lines* that is not already in *path*.

    Existing content and order are preserved.  Running twice with the same
    input leaves the file as it was after the first run.

    A line that exists only with different spacing still counts as absent;
    it is appended verbatim and a warning is logged.

    Returns:
        The lines that were appended, in order.
    """
    try:
        original = path.read_text(encoding="utf-8")
    except OSError as e:
        raise OperationError(f"Failed to read {path}: {e}")

    content = original
    added: list[str] = []
    for line in lines:
        if line_present(content, line):
            continue
        wanted = _normalize(line)
        for existing in content.splitlines():
            if _normalize(existing) == wanted:
                logger.warning(
                    "%s has '%s', which differs from '%s' only in whitespace",
                    path, existing, line,
                )
        if content and not content.endswith("\n"):
            content += "\n"
        content += line + "\n"
        added.append(line)

    if not added:
        return added

    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(content[len(original):])
    except OSError as e:
        raise OperationError(f"Failed to add lines to {path}: {e}")

    if journal is not None:
        journal.record(
            f"restore {path}",
            lambda: path.write_text(original, encoding="utf-8"),
        )
    return added
