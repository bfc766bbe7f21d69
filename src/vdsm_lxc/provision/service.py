# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Provisioning operations for an unprivileged Virtual DSM container.

Provisioning is structured as two pipelines of step functions.  The
host pipeline validates the target, stops the container, creates the
device nodes, patches the container config and starts the container
again.  The guest pipeline installs Docker inside the container,
fetches and patches the Virtual DSM source, and builds the image.

Each host step records the inverse of its changes in an undo journal.
If a host step fails the journal is unwound, newest change first, before
the error propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import ProvisionConfig
from ..operations import OperationError, OperationReporter, UndoJournal
from ..pct_client import PctClient
from .constants import CT_ID_PATTERN, REQUIRED_DEVICES
from .contexts import GuestContext, ProvisionContext
from .devices import device_path, remove_staging_dir, verify_device_node
from .guest import guest_pipeline
from .host import host_pipeline
from .lxc_config import device_mount_lines, line_present

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    """One line of a ``verify`` report."""

    item: str
    ok: bool
    detail: str = ""


class ProvisionService:
    """Provision a container on this host.

    Args:
        config: Paths, ID mapping and source locations.
        pct: Client used for every container operation.
        progress: Optional progress reporter.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        pct: PctClient,
        progress: OperationReporter | None = None,
    ):
        self._config = config
        self._pct = pct
        self._progress = progress

    # -------------------------------------------------------------------------
    # Pipeline runners
    # -------------------------------------------------------------------------

    def provision_host(self, ct_id: str) -> ProvisionContext:
        """Run the host pipeline, unwinding completed changes on failure."""
        ctx = ProvisionContext(
            ct_id=ct_id.strip(),
            config=self._config,
            pct=self._pct,
            journal=UndoJournal(),
            progress=self._progress,
        )
        try:
            host_pipeline.run(ctx)
        except OperationError:
            if len(ctx.journal):
                if self._progress:
                    self._progress.warning("Provisioning failed, reverting host changes")
                failed = ctx.journal.unwind(self._progress)
                if failed:
                    logger.error("Could not revert: %s", "; ".join(failed))
            raise
        ctx.journal.commit()

        if ctx.staging_backup is not None:
            try:
                remove_staging_dir(ctx.staging_backup)
            except OperationError as e:
                logger.warning("Provisioned, but the old device nodes remain: %s", e)
                if self._progress:
                    self._progress.warning(f"Could not remove {ctx.staging_backup}: {e}")
        return ctx

    def setup_guest(self, ct_id: str) -> None:
        """Run the guest pipeline inside a started container."""
        ctx = GuestContext(
            ct_id=ct_id.strip(),
            config=self._config,
            pct=self._pct,
            progress=self._progress,
        )
        guest_pipeline.run(ctx)

    def provision(self, ct_id: str, guest: bool = True) -> None:
        """Provision host side, then (optionally) the guest side.

        A guest failure does not revert the host side; the device nodes
        and mount entries are complete at that point.
        """
        self.provision_host(ct_id)
        if guest:
            self.setup_guest(ct_id)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def verify(self, ct_id: str) -> list[CheckResult]:
        """Inspect device nodes and mount entries without changing anything."""
        ct_id = ct_id.strip()
        if not CT_ID_PATTERN.match(ct_id):
            raise OperationError("Invalid LXC Container ID. Please enter a numeric value.")

        staging_dir = self._config.staging_path(ct_id)
        results: list[CheckResult] = []

        for spec in REQUIRED_DEVICES:
            node = device_path(staging_dir, spec)
            try:
                verify_device_node(node, spec, self._config.idmap_uid, self._config.idmap_gid)
            except OperationError as e:
                results.append(CheckResult(str(node), False, str(e)))
            else:
                results.append(CheckResult(str(node), True, f"{spec.major}:{spec.minor}"))

        config_path = self._config.container_config_path(ct_id)
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            results.append(CheckResult(str(config_path), False, str(e)))
            return results

        for line in device_mount_lines(staging_dir, REQUIRED_DEVICES):
            if line_present(content, line):
                results.append(CheckResult(line, True, "present"))
            else:
                results.append(CheckResult(line, False, "missing"))
        return results
