# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Versioned, anchor-verified patch sets for third-party shell scripts.

A :class:`PatchSet` is a named, versioned list of :class:`FilePatch`
entries.  Each file patch is a list of :class:`LineEdit` operations that
comment out an anchored line (or block) and insert replacement code
after it.

Patching is all-or-nothing per set: every anchor in every file is
located first, and a missing or ambiguous anchor raises before anything
is written.  When the upstream project changes the anchored text the run
fails loudly instead of building with the unpatched scripts.

A marker line naming the set and its version is written into each patched
file, so applying the same set twice leaves the file unchanged.
"""

from __future__ import annotations

import enum
import logging
import textwrap
from dataclasses import dataclass
from pathlib import Path

from ..operations import OperationError

logger = logging.getLogger(__name__)


class PatchError(OperationError):
    """A patch set could not be applied."""


class AnchorNotFoundError(PatchError):
    """An anchor line (or block end) is missing from the target file."""


class AmbiguousAnchorError(PatchError):
    """An anchor line matches more than once in the target file."""


class PatchResult(enum.Enum):
    """Outcome of applying a patch set to one file."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already-applied"


@dataclass(frozen=True)
class LineEdit:
    """Comment out an anchored line or block and insert code after it.

    Lines are compared with surrounding whitespace stripped, so the edit
    survives re-indentation upstream but not any change to the text.

    Attributes:
        anchor: Exact text of the first line to comment out.
        end: If set, comment out through the first following line equal to
            this text (a block edit).
        contains: Lines that must appear inside the block; guards against
            matching the wrong ``if``/``fi`` pair.
        insert: Replacement code inserted after the commented region,
            re-indented to the anchor line's indentation.
    """

    anchor: str
    end: str | None = None
    contains: tuple[str, ...] = ()
    insert: str = ""


@dataclass(frozen=True)
class FilePatch:
    path: str
    edits: tuple[LineEdit, ...]


@dataclass(frozen=True)
class PatchSet:
    name: str
    version: int
    files: tuple[FilePatch, ...]

    @property
    def marker(self) -> str:
        return f"# patched by vdsm-lxc: {self.name} v{self.version}"


def _indent_of(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _find_region(lines: list[str], edit: LineEdit, path: str) -> tuple[int, int]:
    """Locate the ``[start, end]`` line indices an edit covers."""
    wanted = edit.anchor.strip()
    hits = [i for i, line in enumerate(lines) if line.strip() == wanted]
    if not hits:
        raise AnchorNotFoundError(f"{path}: anchor not found: {wanted}")
    if len(hits) > 1:
        raise AmbiguousAnchorError(
            f"{path}: anchor matches {len(hits)} lines "
            f"({', '.join(str(i + 1) for i in hits)}): {wanted}"
        )

    start = end = hits[0]
    if edit.end is not None:
        end_text = edit.end.strip()
        for j in range(start + 1, len(lines)):
            if lines[j].strip() == end_text:
                end = j
                break
        else:
            raise AnchorNotFoundError(
                f"{path}: end of block '{end_text}' not found after line {start + 1}"
            )

    block = {line.strip() for line in lines[start : end + 1]}
    for required in edit.contains:
        if required.strip() not in block:
            raise AnchorNotFoundError(
                f"{path}: block at line {start + 1} does not contain: {required.strip()}"
            )
    return start, end


def apply_file_patch(text: str, patch: FilePatch, marker: str) -> tuple[str, PatchResult]:
    """Apply *patch* to the script source *text*.

    Returns:
        The new text and whether anything changed.

    Raises:
        AnchorNotFoundError: An anchor or block end is missing.
        AmbiguousAnchorError: An anchor matches more than one line.
        PatchError: Two edits overlap.
    """
    if marker in text:
        return text, PatchResult.ALREADY_APPLIED

    lines = text.splitlines(keepends=True)
    regions = sorted(
        ((*_find_region(lines, edit, patch.path), edit) for edit in patch.edits),
        key=lambda r: (r[0], r[1]),
    )
    for (_s1, e1, _), (s2, _e2, _) in zip(regions, regions[1:]):
        if s2 <= e1:
            raise PatchError(f"{patch.path}: overlapping edits at line {s2 + 1}")

    out: list[str] = []
    pos = 0
    for n, (start, end, edit) in enumerate(regions):
        out.extend(lines[pos:start])
        indent = _indent_of(lines[start])
        if n == 0:
            out.append(f"{indent}{marker}\n")
        for line in lines[start : end + 1]:
            out.append("#" + (line if line.endswith("\n") else line + "\n"))
        if edit.insert:
            for new in textwrap.dedent(edit.insert).strip("\n").splitlines():
                out.append(f"{indent}{new}\n" if new.strip() else "\n")
        pos = end + 1
    out.extend(lines[pos:])
    return "".join(out), PatchResult.APPLIED


def apply_patch_set(
    patch_set: PatchSet,
    root: Path,
    check_only: bool = False,
) -> dict[str, PatchResult]:
    """Apply *patch_set* to the files below *root*.

    Every file is patched in memory before any is written back, so a
    failure leaves all files untouched.

    Args:
        patch_set: The set to apply.
        root: Directory the ``FilePatch.path`` entries are relative to.
        check_only: Verify anchors without writing.

    Returns:
        Mapping of file path to :class:`PatchResult`.
    """
    pending: list[tuple[Path, str, PatchResult]] = []
    for fp in patch_set.files:
        target = root / fp.path
        try:
            text = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PatchError(f"Cannot read {target}: {e}")
        new_text, result = apply_file_patch(text, fp, patch_set.marker)
        pending.append((target, new_text, result))

    results: dict[str, PatchResult] = {}
    for (target, new_text, result), fp in zip(pending, patch_set.files):
        results[fp.path] = result
        if check_only or result is PatchResult.ALREADY_APPLIED:
            continue
        try:
            target.write_text(new_text, encoding="utf-8")
        except OSError as e:
            raise PatchError(f"Cannot write {target}: {e}")
        logger.debug("Patched %s with %s v%d", target, patch_set.name, patch_set.version)
    return results


# =============================================================================
# Virtual DSM: tolerate restricted mknod in unprivileged containers
# =============================================================================

_CPIO_EXTRACT = '{ (cd "$TMP" && cpio -idm <"$TMP/rd" 2>/dev/null); rc=$?; } || :'
_CPIO_FAIL = '(( rc != 0 )) && error "Failed to cpio $RDC, reason $rc" && exit 92'
_TAR_EXTRACT = 'tar xpfJ "$HDA.txz" --absolute-names -C "$MOUNT/"'
_TAP_IF = 'if [[ ! -e "${TAP_PATH}" ]]; then'
_TAP_FAIL = '(( rc != 0 )) && error "Cannot mknod: ${TAP_PATH} ($rc)" && exit 20'

_CPIO_TOLERANT = r'''
rc=0
errors=$(cd "$TMP" && cpio -idm <"$TMP/rd" 2>&1) || rc=$?
if (( rc != 0 )); then
  fatal=$(grep -vE "mknod|Operation not permitted|[0-9]+ blocks" <<< "$errors" || true)
  if [ -n "$fatal" ]; then
    echo "$fatal"
    error "Failed to cpio $RDC, reason $rc" && exit 92
  fi
  echo "Warning: ignoring restricted device node errors during cpio extraction."
fi
'''

_TAR_TOLERANT = r'''
rc=0
errors=$(tar xpfJ "$HDA.txz" --absolute-names -C "$MOUNT/" 2>&1) || rc=$?
if (( rc != 0 )); then
  fatal=$(grep -vE "mknod|Operation not permitted|Exiting with failure status" <<< "$errors" || true)
  if [ -n "$fatal" ]; then
    echo "$fatal"
    error "Failed to extract $HDA.txz, reason $rc" && exit 1
  fi
  echo "Warning: ignoring restricted device node errors during tar extraction."
fi
'''

_TAP_TOLERANT = r'''
if [[ ! -e "${TAP_PATH}" ]]; then
  rc=0
  errors=$(mknod "${TAP_PATH}" c "${MAJOR}" "${MINOR}" 2>&1) || rc=$?
  if (( rc != 0 )); then
    if grep -qE "Operation not permitted|Permission denied" <<< "$errors"; then
      echo "Warning: cannot mknod ${TAP_PATH} ($rc), continuing."
    else
      error "Cannot mknod: ${TAP_PATH} ($rc)" && exit 20
    fi
  fi
fi
'''

VIRTUAL_DSM_PATCHES = PatchSet(
    name="restricted-mknod",
    version=1,
    files=(
        FilePatch(
            path="src/install.sh",
            edits=(
                LineEdit(anchor=_CPIO_EXTRACT),
                LineEdit(anchor=_CPIO_FAIL, insert=_CPIO_TOLERANT),
                LineEdit(anchor=_TAR_EXTRACT, insert=_TAR_TOLERANT),
            ),
        ),
        FilePatch(
            path="src/network.sh",
            edits=(
                LineEdit(anchor=_TAP_IF, end="fi", contains=(_TAP_FAIL,), insert=_TAP_TOLERANT),
            ),
        ),
    ),
)
