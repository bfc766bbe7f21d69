# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Constants shared across the provision package."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class DeviceSpec:
    """A character device the container needs bind-mounted in.

    ``path`` is relative both to the host staging directory and to the
    container's ``/dev``.
    """

    path: str
    major: int
    minor: int


# Network tunneling, hardware virtualization, virtual host networking
TUN_DEVICE = DeviceSpec("net/tun", 10, 200)
KVM_DEVICE = DeviceSpec("kvm", 10, 232)
VHOST_NET_DEVICE = DeviceSpec("vhost-net", 10, 238)

REQUIRED_DEVICES: tuple[DeviceSpec, ...] = (TUN_DEVICE, KVM_DEVICE, VHOST_NET_DEVICE)

# Linux dev_t limits: 12-bit major, 20-bit minor
MAX_MAJOR = (1 << 12) - 1
MAX_MINOR = (1 << 20) - 1

# Mode bits for the created nodes (before umask)
DEVICE_NODE_PERMS = 0o666

MOUNT_ENTRY_TEMPLATE = "lxc.mount.entry: {host} {container} none bind,create=file 0 0"

CT_ID_PATTERN = re.compile(r"^[0-9]+$")

# Guest-side package sets
GUEST_PREREQUISITES = ("git", "ca-certificates", "curl", "gnupg")
DOCKER_PACKAGES = (
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
)

# Passed to every guest command; apt must never prompt
GUEST_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

DOCKER_KEYRING_DIR = "/etc/apt/keyrings"
DOCKER_KEYRING = f"{DOCKER_KEYRING_DIR}/docker.gpg"
DOCKER_SOURCE_LIST = "/etc/apt/sources.list.d/docker.list"

# Modes for files pushed into the container
SCRIPT_PERMS = "0755"
APT_SOURCE_PERMS = "0644"
