"""Kernel error types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskkernel.task import Task


class KernelError(Exception):
    """Base class for errors raised by the task kernel."""


class TaskFailure(KernelError):
    """A task body raised and no ``on_error`` callback was registered.

    The kernel treats this as a programmer error: it is re-raised out of
    ``step`` / ``run_for`` with the original exception chained as
    ``__cause__``.

    Attributes:
        original: The exception raised inside the task.
        task: The task that failed (already dropped from the kernel).
        captured_traceback: The task's formatted traceback, or ``None`` when
            capture is disabled or unavailable on this host.
    """

    def __init__(
        self,
        original: BaseException,
        task: Task | None = None,
        captured_traceback: str | None = None,
    ) -> None:
        self.original = original
        self.task = task
        self.captured_traceback = captured_traceback
        label = task.label if task is not None else "<unknown task>"
        super().__init__(f"failure in async task {label}: {original!r}")

    def format_full(self) -> str:
        """Format the failure together with the task's traceback."""
        parts = [str(self)]
        if self.captured_traceback:
            parts.append(f"\nTask traceback:\n{self.captured_traceback.rstrip()}")
        return "".join(parts)


class MisuseError(KernelError):
    """A task-only operation was invoked outside of any running task."""

    def __init__(self, operation: str, hint: str | None = None) -> None:
        self.operation = operation
        message = f"{operation}() must be called from inside a running task"
        if hint:
            message = f"{message}; {hint}"
        super().__init__(message)


__all__ = [
    "KernelError",
    "MisuseError",
    "TaskFailure",
]
