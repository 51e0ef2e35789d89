from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any


logger = logging.getLogger(__name__)


class CellState(Enum):
    UNINITIALIZED = "uninitialized"
    IN_FLIGHT = "in_flight"
    READY = "ready"
    FAILED = "failed"


class SingletonCell:
    """Per-module memo for one singleton factory.

    UNINITIALIZED -> IN_FLIGHT on ``begin``; the construction task settles the
    cell to READY or FAILED. ``reset`` returns it to UNINITIALIZED, and a task
    started before the reset no longer settles the cell.
    A FAILED cell is rebuilt on the next request.
    """

    __slots__ = ("error", "label", "state", "task", "value")

    def __init__(self, label: str) -> None:
        self.label = label
        self.state = CellState.UNINITIALIZED
        self.task: asyncio.Future[Any] | None = None
        self.value: Any = None
        self.error: BaseException | None = None

    def begin(self, task: asyncio.Future[Any]) -> None:
        if self.state is CellState.IN_FLIGHT:
            msg = f"Singleton {self.label} is already being constructed."
            raise RuntimeError(msg)

        self.state = CellState.IN_FLIGHT
        self.task = task
        self.value = None
        self.error = None
        task.add_done_callback(self.settle)

    def settle(self, task: asyncio.Future[Any]) -> None:
        if task is not self.task:
            logger.debug("Ignoring stale construction of %s", self.label)
            if not task.cancelled():
                task.exception()  # mark retrieved
            return

        self.task = None
        if task.cancelled():
            self.state = CellState.UNINITIALIZED
            return

        error = task.exception()
        if error is not None:
            logger.debug("Construction of singleton %s failed: %r", self.label, error)
            self.state = CellState.FAILED
            self.error = error
        else:
            self.state = CellState.READY
            self.value = task.result()

    def reset(self) -> None:
        self.state = CellState.UNINITIALIZED
        self.task = None
        self.value = None
        self.error = None
