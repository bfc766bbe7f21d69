# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ordered registry of provisioning steps.

Steps are plain functions taking a context object.  Each step module
imports the pipeline it belongs to and registers its functions with
:meth:`Pipeline.step`; the package ``__init__`` imports the step
modules so registration happens on import.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, overload

logger = logging.getLogger(__name__)

_Ctx = TypeVar("_Ctx")

StepFn = Callable[[_Ctx], None]

DEFAULT_ORDER = 500


@dataclass(frozen=True)
class Step(Generic[_Ctx]):
    """A registered step and its position."""

    order: int
    seq: int
    fn: StepFn[_Ctx]

    @property
    def name(self) -> str:
        return self.fn.__name__

    @property
    def title(self) -> str:
        """First docstring line, or the function name."""
        doc = (self.fn.__doc__ or "").strip()
        return doc.splitlines()[0] if doc else self.name


class Pipeline(Generic[_Ctx]):
    """Steps run by ascending ``order``, ties broken by registration.

    Orders are spaced by 100 so later steps can slot in between.
    Everything runs synchronously and the first exception ends the run.

    Example::

        host = Pipeline[ProvisionContext]("host")

        @host.step(order=400)
        def add_mount_entries(ctx: ProvisionContext) -> None: ...
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._registry: list[Step[_Ctx]] = []

    @overload
    def step(self, fn: StepFn[_Ctx]) -> StepFn[_Ctx]: ...
    @overload
    def step(self, *, order: int) -> Callable[[StepFn[_Ctx]], StepFn[_Ctx]]: ...

    def step(
        self,
        fn: StepFn[_Ctx] | None = None,
        *,
        order: int = DEFAULT_ORDER,
    ) -> StepFn[_Ctx] | Callable[[StepFn[_Ctx]], StepFn[_Ctx]]:
        """Register a step; usable as ``@p.step`` or ``@p.step(order=N)``."""
        def register(f: StepFn[_Ctx]) -> StepFn[_Ctx]:
            self._registry.append(Step(order, len(self._registry), f))
            return f

        return register if fn is None else register(fn)

    def steps(self) -> list[Step[_Ctx]]:
        """Registered steps in execution order."""
        return sorted(self._registry, key=lambda s: (s.order, s.seq))

    def run(self, ctx: _Ctx) -> None:
        for s in self.steps():
            logger.debug("[%s %d] %s", self.name, s.order, s.title)
            s.fn(ctx)

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        listed = ", ".join(f"{s.name}({s.order})" for s in self.steps())
        return f"Pipeline({self.name!r}, [{listed}])"
