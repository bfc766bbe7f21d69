# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Shared fixtures for vdsm-lxc unit tests."""

from __future__ import annotations

import errno
import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from vdsm_lxc.config import ProvisionConfig
from vdsm_lxc.pct_client import PctError


class FakePct:
    """In-memory stand-in for :class:`vdsm_lxc.pct_client.PctClient`.

    ``fail`` maps an operation (``"status"``, ``"stop"``, ``"start"``, or the first word
    of an exec'd command) to the error text it should fail with.
    """

    def __init__(self, running: bool = False):
        self.running: dict[str, bool] = {}
        self.default_running = running
        self.calls: list[tuple[Any, ...]] = []
        self.fail: dict[str, str] = {}
        self.guest_files: dict[str, str] = {}
        self.exec_stdout: dict[str, str] = {
            "dpkg": "amd64\n",
            "sh": "bookworm\n",
        }

    def status(self, ct_id: str) -> str:
        self._maybe_fail("status")
        state = self.running.get(ct_id, self.default_running)
        return "status: running" if state else "status: stopped"

    def is_running(self, ct_id: str) -> bool:
        return "running" in self.status(ct_id)

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail:
            raise PctError(f"pct {op} exited with status 1: {self.fail[op]}", 1, self.fail[op])

    def stop(self, ct_id: str) -> None:
        self.calls.append(("stop", ct_id))
        self._maybe_fail("stop")
        self.running[ct_id] = False

    def start(self, ct_id: str) -> None:
        self.calls.append(("start", ct_id))
        self._maybe_fail("start")
        self.running[ct_id] = True

    def exec(
        self,
        ct_id: str,
        argv: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        self.calls.append(("exec", ct_id, tuple(argv), dict(env or {})))
        self._maybe_fail(argv[0])
        stdout = self.exec_stdout.get(argv[0], "")
        return subprocess.CompletedProcess(list(argv), 0, stdout, "")

    def push(self, ct_id: str, local_path: str, guest_path: str, perms: str | None = None) -> None:
        self.calls.append(("push", ct_id, guest_path, perms))
        self.guest_files[guest_path] = Path(local_path).read_text(encoding="utf-8")

    def pull(self, ct_id: str, guest_path: str, local_path: str) -> None:
        self.calls.append(("pull", ct_id, guest_path))
        if guest_path not in self.guest_files:
            raise PctError(f"pct pull exited with status 1: {guest_path} not found", 1)
        Path(local_path).write_text(self.guest_files[guest_path], encoding="utf-8")

    def exec_commands(self) -> list[tuple[str, ...]]:
        return [c[2] for c in self.calls if c[0] == "exec"]


class FakeNodes:
    """Record of device nodes created through the patched ``os.mknod``."""

    def __init__(self) -> None:
        self.nodes: dict[str, dict[str, int]] = {}
        self.created: list[str] = []
        self.fail_mknod: set[str] = set()
        self.fail_chown: set[str] = set()


@pytest.fixture
def fake_nodes(monkeypatch: pytest.MonkeyPatch) -> FakeNodes:
    """Let tests create "device nodes" without CAP_MKNOD.

    ``mknod`` creates an empty regular file and remembers the requested
    mode and device number; ``lstat`` reports them back for those paths.
    """
    state = FakeNodes()
    real_lstat = os.lstat

    def fake_mknod(path: Any, mode: int = 0o600, device: int = 0, **_kw: Any) -> None:
        p = os.fspath(path)
        if p in state.fail_mknod:
            raise PermissionError(errno.EPERM, "Operation not permitted", p)
        with open(p, "x"):
            pass
        state.nodes[p] = {"mode": mode, "rdev": device, "uid": 0, "gid": 0}
        state.created.append(p)

    def fake_chown(path: Any, uid: int, gid: int, **_kw: Any) -> None:
        p = os.fspath(path)
        if p in state.fail_chown:
            raise PermissionError(errno.EPERM, "Operation not permitted", p)
        state.nodes[p]["uid"] = uid
        state.nodes[p]["gid"] = gid

    def fake_lstat(path: Any, *args: Any, **kwargs: Any) -> Any:
        st = real_lstat(path, *args, **kwargs)
        if isinstance(path, (str, os.PathLike)) and not kwargs.get("dir_fd"):
            node = state.nodes.get(os.fspath(path))
            if node is not None:
                return SimpleNamespace(
                    st_mode=node["mode"],
                    st_rdev=node["rdev"],
                    st_uid=node["uid"],
                    st_gid=node["gid"],
                )
        return st

    monkeypatch.setattr(os, "mknod", fake_mknod)
    monkeypatch.setattr(os, "chown", fake_chown)
    monkeypatch.setattr(os, "lstat", fake_lstat)
    return state


@pytest.fixture
def fake_pct() -> FakePct:
    return FakePct()


@pytest.fixture
def provision_config(tmp_path: Path) -> ProvisionConfig:
    """Config rooted in ``tmp_path``: ``lxc/`` for configs, ``dev-<id>`` for nodes."""
    lxc_dir = tmp_path / "lxc"
    lxc_dir.mkdir()
    return ProvisionConfig(
        config_dir=str(lxc_dir),
        staging_dir=str(tmp_path / "dev-{ct_id}"),
    )


@pytest.fixture
def container_config(provision_config: ProvisionConfig) -> Path:
    """An existing config file for container 105."""
    path = provision_config.container_config_path("105")
    path.write_text(
        "arch: amd64\n"
        "cores: 4\n"
        "hostname: dsm\n"
        "memory: 4096\n"
        "unprivileged: 1\n",
        encoding="utf-8",
    )
    return path
