"""Tracks which kernel/task pair is currently being resumed.

Combinators consult this to find the kernel they run under and to reject
calls made outside of any task.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskkernel.errors import MisuseError

if TYPE_CHECKING:
    from taskkernel.kernel import Kernel
    from taskkernel.task import Task


@dataclass(frozen=True)
class RunningTask:
    kernel: Kernel
    task: Task


_running: ContextVar[RunningTask | None] = ContextVar("taskkernel_running", default=None)


@contextmanager
def running(kernel: Kernel, task: Task) -> Iterator[RunningTask]:
    entry = RunningTask(kernel, task)
    token = _running.set(entry)
    try:
        yield entry
    finally:
        _running.reset(token)


def current() -> RunningTask | None:
    return _running.get()


def current_task() -> Task | None:
    entry = _running.get()
    return entry.task if entry is not None else None


def current_kernel() -> Kernel | None:
    entry = _running.get()
    return entry.kernel if entry is not None else None


def require_task(operation: str, hint: str | None = None) -> RunningTask:
    entry = _running.get()
    if entry is None:
        raise MisuseError(operation, hint)
    return entry


__all__ = [
    "RunningTask",
    "current",
    "current_kernel",
    "current_task",
    "require_task",
    "running",
]
