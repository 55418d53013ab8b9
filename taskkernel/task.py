"""Task record and the single-step resume primitive."""

from __future__ import annotations

import inspect
import itertools
import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any, Literal

from taskkernel._vendor import FrozenDict, trace_err
from taskkernel.result import Done, Failed, ResumeOutcome, classify_yield

logger = logging.getLogger(__name__)

TaskStatus = Literal["ready", "running", "stalled", "completed", "failed", "cancelled"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed", "cancelled"})

CompleteCallback = Callable[[Any], Any]
ErrorCallback = Callable[[BaseException], Any]

_task_ids = itertools.count(1)


def capture_traceback(error: BaseException) -> str | None:
    """Format ``error`` with the frames of the task that raised it.

    Returns ``None`` instead of raising when the host cannot walk the frames.
    """
    try:
        return trace_err(error).tb
    except Exception as capture_error:
        logger.warning(
            "Skipping task traceback capture for %s: %s",
            type(error).__name__,
            capture_error,
        )
        return None


def _describe(computation: Any) -> str:
    if inspect.isgenerator(computation):
        return computation.gi_code.co_name
    return getattr(computation, "__name__", None) or type(computation).__name__


@dataclass(eq=False)
class Task:
    """One resumable computation plus its callbacks.

    ``computation`` is either a generator (already created) or a callable that
    is invoked with ``args``/``kwargs`` on the first resume. A callable that
    returns a generator hands that generator over as the task body; any other
    return value completes the task immediately.
    """

    computation: Generator[Any, Any, Any] | Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: FrozenDict = field(default_factory=FrozenDict)
    on_complete: CompleteCallback | None = None
    on_error: ErrorCallback | None = None
    name: str | None = None
    task_id: int = field(default_factory=lambda: next(_task_ids))
    cancelled: bool = False
    status: TaskStatus = "ready"
    resume_count: int = 0
    _generator: Generator[Any, Any, Any] | None = field(default=None, repr=False)
    _started: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.kwargs, FrozenDict):
            self.kwargs = FrozenDict(self.kwargs)
        if self.name is None:
            self.name = _describe(self.computation)
        if inspect.isgenerator(self.computation):
            if self.args or self.kwargs:
                raise TypeError(
                    "args cannot be passed to an already-created generator; "
                    "pass the generator function to Kernel.call instead"
                )
            self._generator = self.computation
        elif not callable(self.computation):
            raise TypeError(
                f"computation must be a generator or callable, got {type(self.computation).__name__}"
            )

    @property
    def label(self) -> str:
        return f"#{self.task_id} {self.name}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def resume(self, *, capture_tracebacks: bool = True) -> ResumeOutcome:
        """Run the computation until it yields, returns or raises."""
        self.resume_count += 1

        if not self._started:
            self._started = True
            if self._generator is None:
                try:
                    produced = self.computation(*self.args, **self.kwargs)
                except Exception as exc:
                    return self._failed(exc, capture_tracebacks)
                if not inspect.isgenerator(produced):
                    return Done(produced)
                self._generator = produced

        try:
            yielded = self._generator.send(None)
        except StopIteration as stop:
            return Done(stop.value)
        except Exception as exc:
            return self._failed(exc, capture_tracebacks)
        return classify_yield(yielded)

    def close(self, *, capture_tracebacks: bool = True) -> Failed | None:
        """Close the underlying generator, running its ``finally`` blocks."""
        if self._generator is None:
            return None
        try:
            self._generator.close()
        except Exception as exc:
            return self._failed(exc, capture_tracebacks)
        return None

    @staticmethod
    def _failed(error: Exception, capture_tracebacks: bool) -> Failed:
        tb = capture_traceback(error) if capture_tracebacks else None
        return Failed(error, tb)


__all__ = [
    "CompleteCallback",
    "ErrorCallback",
    "TERMINAL_STATUSES",
    "Task",
    "TaskStatus",
    "capture_traceback",
]
