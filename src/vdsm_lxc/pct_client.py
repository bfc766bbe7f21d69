# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Thin client for the Proxmox ``pct`` container tool.

Every call is a blocking ``subprocess.run``.  Success or failure is
observed through the exit status; the run state is read from the text
``pct status`` prints.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)


class PctError(Exception):
    """Error from a ``pct`` invocation."""

    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class PctClient:
    """Run ``pct`` subcommands against containers on this host."""

    def __init__(self, binary: str = "pct"):
        self._binary = binary

    def _run(
        self,
        args: Sequence[str],
        *,
        check: bool = True,
        input: str | None = None,
    ) -> subprocess.CompletedProcess[str]:
        cmd = [self._binary, *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise PctError(f"{self._binary} not found: {e}")

        if check and result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise PctError(
                f"{self._binary} {args[0]} exited with status {result.returncode}"
                + (f": {output}" if output else ""),
                result.returncode,
                output,
            )
        return result

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def status(self, ct_id: str) -> str:
        """Return the text ``pct status`` prints, stdout and stderr combined.

        A non-zero exit (e.g. unknown container) is not an error here;
        the returned text simply won't say ``running``.
        """
        result = self._run(["status", ct_id], check=False)
        return (result.stdout + result.stderr).strip()

    def is_running(self, ct_id: str) -> bool:
        return "running" in self.status(ct_id)

    def stop(self, ct_id: str) -> None:
        self._run(["stop", ct_id])

    def start(self, ct_id: str) -> None:
        self._run(["start", ct_id])

    # -------------------------------------------------------------------------
    # Guest access
    # -------------------------------------------------------------------------

    def exec(
        self,
        ct_id: str,
        argv: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run *argv* inside the container.

        Environment variables are passed per call through ``env(1)``, so
        nothing depends on the container's ambient shell state.

        Raises:
            PctError: If the command exits non-zero.
        """
        env_args = [f"{k}={v}" for k, v in (env or {}).items()]
        if env_args:
            full = ["exec", ct_id, "--", "env", *env_args, *argv]
        else:
            full = ["exec", ct_id, "--", *argv]
        return self._run(full)

    def push(self, ct_id: str, local_path: str, guest_path: str, perms: str | None = None) -> None:
        """Copy a host file into the container."""
        args = ["push", ct_id, local_path, guest_path]
        if perms is not None:
            args.extend(["--perms", perms])
        self._run(args)

    def pull(self, ct_id: str, guest_path: str, local_path: str) -> None:
        """Copy a file out of the container onto the host."""
        self._run(["pull", ct_id, guest_path, local_path])
