# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Layered configuration for vdsm-lxc.

Configuration is read from (highest to lowest priority):
  1. a file passed explicitly (``--config``)
  2. ~/.config/vdsm-lxc/vdsm-lxc.conf  (user)
  3. /etc/vdsm-lxc/vdsm-lxc.conf       (system)
  4. /usr/lib/vdsm-lxc/vdsm-lxc.conf   (package defaults)

Each file is INI-style with a single ``[vdsm-lxc]`` section::

    [vdsm-lxc]
    config_dir = /etc/pve/lxc
    idmap_uid = 100000
    idmap_gid = 100000

Missing files are skipped; missing keys fall back to the next layer.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

SECTION = "vdsm-lxc"

SYSTEM_CONFIG_PATHS = (
    "/usr/lib/vdsm-lxc/vdsm-lxc.conf",
    "/etc/vdsm-lxc/vdsm-lxc.conf",
)

_INT_KEYS = frozenset({"idmap_uid", "idmap_gid"})


class ConfigError(Exception):
    """Raised when a config file is unreadable or has invalid values."""


@dataclass(frozen=True)
class ProvisionConfig:
    """Settings passed explicitly into every provisioning operation."""

    # Directory of per-container config files, keyed by numeric ID
    config_dir: str = "/etc/pve/lxc"
    # Host staging directory for device nodes; ``{ct_id}`` is substituted
    staging_dir: str = "/dev-{ct_id}"
    # Host UID/GID that container root is mapped to
    idmap_uid: int = 100000
    idmap_gid: int = 100000
    source_repository: str = "https://github.com/vdsm/virtual-dsm.git"
    guest_checkout: str = "/root/virtual-dsm"
    image_tag: str = "virtual-dsm"
    docker_apt_url: str = "https://download.docker.com/linux/debian"

    def container_config_path(self, ct_id: str) -> Path:
        return Path(self.config_dir) / f"{ct_id}.conf"

    def staging_path(self, ct_id: str) -> Path:
        return Path(self.staging_dir.format(ct_id=ct_id))


def _user_config_path(home_dir: str | None = None) -> Path:
    if home_dir is None:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        if xdg:
            return Path(xdg) / "vdsm-lxc" / "vdsm-lxc.conf"
        home_dir = os.path.expanduser("~")
    return Path(home_dir) / ".config" / "vdsm-lxc" / "vdsm-lxc.conf"


def _read_layer(path: Path) -> dict[str, str]:
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, encoding="utf-8") as f:
            parser.read_file(f)
    except FileNotFoundError:
        return {}
    except (OSError, configparser.Error) as e:
        raise ConfigError(f"Cannot read {path}: {e}")

    if not parser.has_section(SECTION):
        return {}
    return dict(parser.items(SECTION))


def _apply_layer(config: ProvisionConfig, values: dict[str, str], source: Path) -> ProvisionConfig:
    known = {f.name for f in fields(ProvisionConfig)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown keys in {source}: {', '.join(sorted(unknown))}")

    changes: dict[str, str | int] = {}
    for key, raw in values.items():
        if key in _INT_KEYS:
            try:
                changes[key] = int(raw)
            except ValueError:
                raise ConfigError(f"{source}: '{key}' must be an integer, got {raw!r}")
            if changes[key] < 0:
                raise ConfigError(f"{source}: '{key}' must not be negative")
        else:
            changes[key] = raw.strip()
    return replace(config, **changes)


def load_config(
    extra: str | os.PathLike[str] | None = None,
    home_dir: str | None = None,
    system_paths: tuple[str, ...] = SYSTEM_CONFIG_PATHS,
) -> ProvisionConfig:
    """Load configuration, lowest priority layer first.

    Args:
        extra: Optional explicit config file; must exist when given.
        home_dir: Home directory used to locate the user config.
        system_paths: Package and system config files, lowest priority first.

    Returns:
        The merged configuration.
    """
    layers = [Path(p) for p in system_paths]
    layers.append(_user_config_path(home_dir))

    config = ProvisionConfig()
    for path in layers:
        config = _apply_layer(config, _read_layer(path), path)

    if extra is not None:
        extra_path = Path(extra)
        if not extra_path.is_file():
            raise ConfigError(f"Config file {extra_path} does not exist")
        config = _apply_layer(config, _read_layer(extra_path), extra_path)

    return config
