# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for device node provisioning."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from vdsm_lxc.operations import OperationError, UndoJournal
from vdsm_lxc.provision.constants import KVM_DEVICE, TUN_DEVICE, DeviceSpec
from vdsm_lxc.provision.devices import (
    provision_device,
    backup_path,
    remove_staging_dir,
    set_aside_staging_dir,
    validate_spec,
    verify_device_node,
)

from .conftest import FakeNodes


def test_creates_char_node_with_owner(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    staging = tmp_path / "dev-105"

    node = provision_device(TUN_DEVICE, staging, 100000, 100000)

    assert node == staging / "net" / "tun"
    record = fake_nodes.nodes[str(node)]
    assert stat.S_ISCHR(record["mode"])
    assert (os.major(record["rdev"]), os.minor(record["rdev"])) == (10, 200)
    assert (record["uid"], record["gid"]) == (100000, 100000)


def test_journal_removes_node_and_created_dirs(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    staging = tmp_path / "dev-105"
    journal = UndoJournal()

    provision_device(TUN_DEVICE, staging, 100000, 100000, journal)
    journal.unwind()

    assert not staging.exists()
    assert tmp_path.exists()


@pytest.mark.parametrize(
    "spec",
    [
        DeviceSpec("", 10, 200),
        DeviceSpec("/abs/tun", 10, 200),
        DeviceSpec("../escape", 10, 200),
        DeviceSpec("kvm", -1, 232),
        DeviceSpec("kvm", 4096, 232),
        DeviceSpec("kvm", 10, 1 << 20),
    ],
)
def test_invalid_specs_are_rejected(spec: DeviceSpec) -> None:
    with pytest.raises(OperationError):
        validate_spec(spec)


def test_invalid_spec_touches_nothing(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    staging = tmp_path / "dev-105"
    with pytest.raises(OperationError):
        provision_device(DeviceSpec("kvm", 10, 1 << 20), staging, 100000, 100000)
    assert not staging.exists()
    assert fake_nodes.created == []


def test_mknod_failure_is_fatal(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    staging = tmp_path / "dev-105"
    fake_nodes.fail_mknod.add(str(staging / "kvm"))

    with pytest.raises(OperationError, match="Failed to mknod"):
        provision_device(KVM_DEVICE, staging, 100000, 100000)


def test_chown_failure_is_fatal(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    staging = tmp_path / "dev-105"
    fake_nodes.fail_chown.add(str(staging / "kvm"))

    with pytest.raises(OperationError, match="Failed to chown"):
        provision_device(KVM_DEVICE, staging, 100000, 100000)


def test_verify_rejects_regular_file(tmp_path: Path) -> None:
    plain = tmp_path / "kvm"
    plain.write_text("", encoding="utf-8")
    with pytest.raises(OperationError, match="not a character device"):
        verify_device_node(plain, KVM_DEVICE, os.getuid(), os.getgid())


def test_verify_reports_missing_node(tmp_path: Path) -> None:
    with pytest.raises(OperationError, match="does not exist"):
        verify_device_node(tmp_path / "kvm", KVM_DEVICE, 0, 0)


def test_verify_reports_wrong_device_number(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    node = provision_device(KVM_DEVICE, tmp_path, 100000, 100000)
    with pytest.raises(OperationError, match="expected 10:200"):
        verify_device_node(node, TUN_DEVICE, 100000, 100000)


def test_verify_reports_wrong_owner(tmp_path: Path, fake_nodes: FakeNodes) -> None:
    node = provision_device(KVM_DEVICE, tmp_path, 100000, 100000)
    with pytest.raises(OperationError, match="expected 0:0"):
        verify_device_node(node, KVM_DEVICE, 0, 0)


def test_remove_staging_dir(tmp_path: Path) -> None:
    staging = tmp_path / "dev-105"
    (staging / "net").mkdir(parents=True)
    (staging / "net" / "tun").write_text("", encoding="utf-8")

    assert remove_staging_dir(staging) is True
    assert not staging.exists()
    assert remove_staging_dir(staging) is False


def test_set_aside_moves_old_nodes_and_journal_restores(tmp_path: Path) -> None:
    staging = tmp_path / "dev-105"
    (staging / "net").mkdir(parents=True)
    (staging / "net" / "tun").write_text("old", encoding="utf-8")
    journal = UndoJournal()

    backup = set_aside_staging_dir(staging, journal)

    assert backup == tmp_path / "dev-105.bak"
    assert (backup / "net" / "tun").read_text(encoding="utf-8") == "old"
    assert not staging.exists()

    # a half-built replacement is discarded on unwind
    (staging / "net").mkdir(parents=True)
    (staging / "net" / "tun").write_text("new", encoding="utf-8")
    assert journal.unwind() == []

    assert (staging / "net" / "tun").read_text(encoding="utf-8") == "old"
    assert not backup.exists()


def test_set_aside_replaces_stale_backup(tmp_path: Path) -> None:
    staging = tmp_path / "dev-105"
    staging.mkdir()
    (staging / "kvm").write_text("current", encoding="utf-8")
    stale = backup_path(staging)
    stale.mkdir()
    (stale / "leftover").write_text("", encoding="utf-8")

    set_aside_staging_dir(staging)

    assert sorted(p.name for p in stale.iterdir()) == ["kvm"]


def test_set_aside_without_staging_dir(tmp_path: Path) -> None:
    journal = UndoJournal()
    assert set_aside_staging_dir(tmp_path / "dev-105", journal) is None
    assert len(journal) == 0
