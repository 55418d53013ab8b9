"""
Execution observability for the task kernel.

Public API:
    - OutcomeKind: Literal type naming how a step ended
    - TaskSnapshot: Snapshot of a single task
    - KernelSnapshot: Point-in-time snapshot of both queues
    - StepRecord: What a single ``Kernel.step`` call did
    - log_steps: ``on_step`` callback that writes records through loguru

Example usage (callback-based):
    def trace(record: StepRecord) -> None:
        print(f"step {record.step_count}: {record.task_label} -> {record.outcome}")

    kernel = Kernel(on_step=trace)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from loguru import logger as loguru_logger

if TYPE_CHECKING:
    from taskkernel.task import Task, TaskStatus

OutcomeKind = Literal["continued", "stalled", "completed", "failed", "cancelled"]

StepCallback = Callable[["StepRecord"], None]


@dataclass(frozen=True)
class TaskSnapshot:
    task_id: int
    name: str
    status: TaskStatus
    resume_count: int
    cancelled: bool

    @classmethod
    def from_task(cls, task: Task) -> TaskSnapshot:
        return cls(
            task_id=task.task_id,
            name=task.name or "",
            status=task.status,
            resume_count=task.resume_count,
            cancelled=task.cancelled,
        )


@dataclass(frozen=True)
class KernelSnapshot:
    """
    Point-in-time view of a kernel.

    Attributes:
        step_count: Steps that did work since the kernel was created.
        ready: Tasks due for immediate resumption, front first.
        stalled: Tasks waiting for the next round, front first.
        running: The task being resumed when the snapshot was taken.
    """

    step_count: int
    ready: tuple[TaskSnapshot, ...]
    stalled: tuple[TaskSnapshot, ...]
    running: TaskSnapshot | None = None

    @property
    def ready_count(self) -> int:
        return len(self.ready)

    @property
    def stalled_count(self) -> int:
        return len(self.stalled)

    @property
    def is_idle(self) -> bool:
        return not self.ready and not self.stalled and self.running is None


@dataclass(frozen=True)
class StepRecord:
    step_count: int
    task_id: int
    task_label: str
    outcome: OutcomeKind
    ready_count: int
    stalled_count: int
    elapsed: float

    def format(self) -> str:
        return (
            f"step {self.step_count}: {self.task_label} {self.outcome} "
            f"(ready={self.ready_count}, stalled={self.stalled_count}, "
            f"{self.elapsed * 1000:.3f}ms)"
        )


def log_steps(level: str = "DEBUG") -> StepCallback:
    """Return an ``on_step`` callback that logs every step through loguru."""
    bound = loguru_logger.bind(component="taskkernel")

    def _log(record: StepRecord) -> None:
        bound.log(level, record.format())

    return _log


__all__ = [
    "KernelSnapshot",
    "OutcomeKind",
    "StepCallback",
    "StepRecord",
    "TaskSnapshot",
    "log_steps",
]
