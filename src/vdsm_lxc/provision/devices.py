# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Create and verify character device nodes in the host staging directory.

An unprivileged container cannot ``mknod`` for itself, so the nodes are
created on the host, owned by the container's ID-mapped root, and
bind-mounted in through ``lxc.mount.entry`` lines.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from ..operations import OperationError, UndoJournal
from .constants import DEVICE_NODE_PERMS, MAX_MAJOR, MAX_MINOR, DeviceSpec

logger = logging.getLogger(__name__)


def validate_spec(spec: DeviceSpec) -> None:
    """Reject device specs that can't name a real node."""
    if not spec.path or spec.path.startswith("/") or ".." in Path(spec.path).parts:
        raise OperationError(f"Invalid device path: {spec.path!r}")
    if not 0 <= spec.major <= MAX_MAJOR:
        raise OperationError(f"Device major {spec.major} out of range for {spec.path}")
    if not 0 <= spec.minor <= MAX_MINOR:
        raise OperationError(f"Device minor {spec.minor} out of range for {spec.path}")


def device_path(staging_dir: Path, spec: DeviceSpec) -> Path:
    return staging_dir / spec.path


def _makedirs(path: Path, journal: UndoJournal | None) -> None:
    """Create *path* and any missing parents, journaling each new one."""
    missing: list[Path] = []
    p = path
    while not p.exists():
        missing.append(p)
        if p.parent == p:
            break
        p = p.parent

    for d in reversed(missing):
        try:
            d.mkdir()
        except FileExistsError:
            continue
        except OSError as e:
            raise OperationError(f"Failed to create {d}: {e}")
        if journal is not None:
            journal.record(f"remove directory {d}", lambda d=d: d.rmdir())


def remove_staging_dir(staging_dir: Path) -> bool:
    """Remove a staging directory and everything in it.

    Returns:
        True if something was removed.
    """
    if not staging_dir.is_dir():
        return False
    try:
        shutil.rmtree(staging_dir)
    except OSError as e:
        raise OperationError(f"Failed to remove existing {staging_dir} folder: {e}")
    return True


def backup_path(staging_dir: Path) -> Path:
    return staging_dir.with_name(staging_dir.name + ".bak")


def _restore_staging_dir(staging_dir: Path, backup: Path) -> None:
    remove_staging_dir(staging_dir)
    try:
        backup.rename(staging_dir)
    except OSError as e:
        raise OperationError(f"Failed to restore {staging_dir} from {backup}: {e}")


def set_aside_staging_dir(staging_dir: Path, journal: UndoJournal | None = None) -> Path | None:
    """Move a staging directory left by an earlier run to ``<dir>.bak``.

    The nodes in it may still be bind-mounted by the existing config, so
    they are kept until the new set is in place.  The journal entry moves
    the backup back over whatever the failed run created.

    Returns:
        The backup path, or None if there was nothing to move.
    """
    if not staging_dir.is_dir():
        return None
    backup = backup_path(staging_dir)
    remove_staging_dir(backup)
    try:
        staging_dir.rename(backup)
    except OSError as e:
        raise OperationError(f"Failed to move existing {staging_dir} folder aside: {e}")
    if journal is not None:
        journal.record(
            f"restore {staging_dir} from {backup}",
            lambda: _restore_staging_dir(staging_dir, backup),
        )
    logger.debug("Moved %s to %s", staging_dir, backup)
    return backup


def verify_device_node(path: Path, spec: DeviceSpec, uid: int, gid: int) -> None:
    """Check that *path* is the expected character device with the expected owner.

    Raises:
        OperationError: Describing the first mismatch found.
    """
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        raise OperationError(f"{path} should have been created but does not exist")
    except OSError as e:
        raise OperationError(f"Cannot inspect {path}: {e}")

    if not stat.S_ISCHR(st.st_mode):
        raise OperationError(f"{path} exists but is not a character device")

    actual = (os.major(st.st_rdev), os.minor(st.st_rdev))
    if actual != (spec.major, spec.minor):
        raise OperationError(
            f"{path} has device number {actual[0]}:{actual[1]}, "
            f"expected {spec.major}:{spec.minor}"
        )

    if (st.st_uid, st.st_gid) != (uid, gid):
        raise OperationError(
            f"{path} is owned by {st.st_uid}:{st.st_gid}, expected {uid}:{gid}"
        )


def provision_device(
    spec: DeviceSpec,
    staging_dir: Path,
    uid: int,
    gid: int,
    journal: UndoJournal | None = None,
) -> Path:
    """Create one device node under *staging_dir* and hand it to *uid*:*gid*.

    Every sub-step is fatal: directory creation, ``mknod``, ``chown`` and
    the final verification all raise :class:`OperationError` on failure.

    Returns:
        Path of the created node.
    """
    validate_spec(spec)
    node = device_path(staging_dir, spec)

    _makedirs(node.parent, journal)

    try:
        os.mknod(node, stat.S_IFCHR | DEVICE_NODE_PERMS, os.makedev(spec.major, spec.minor))
    except OSError as e:
        raise OperationError(f"Failed to mknod {node}: {e}")
    if journal is not None:
        journal.record(f"remove device node {node}", node.unlink)

    try:
        os.chown(node, uid, gid)
    except OSError as e:
        raise OperationError(f"Failed to chown {node}: {e}")

    verify_device_node(node, spec, uid, gid)
    logger.debug("Created %s (%d:%d) owned by %d:%d", node, spec.major, spec.minor, uid, gid)
    return node
