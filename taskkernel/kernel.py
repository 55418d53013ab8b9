"""Cooperative task kernel.

Tasks live in exactly one of two FIFO queues:

- ``ready``: due for immediate resumption.
- ``stalled``: voluntarily suspended; resumed only after every task that was
  ready has had a turn.

When ``ready`` runs dry the two queues are swapped, so each full round gives
every live task exactly one resume. The host drives the kernel by calling
``run_for`` once per update tick with a bounded time budget.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections import deque
from collections.abc import Callable, Generator, Iterable
from typing import Any

from taskkernel._vendor import Err, FrozenDict, Ok, Result
from taskkernel.clock import Clock, MonotonicClock
from taskkernel.config import KernelConfig
from taskkernel.context import running
from taskkernel.errors import KernelError, TaskFailure
from taskkernel.observability import (
    KernelSnapshot,
    OutcomeKind,
    StepCallback,
    StepRecord,
    TaskSnapshot,
)
from taskkernel.result import Done, Failed, ResumeOutcome, Signal, Yielded
from taskkernel.task import CompleteCallback, ErrorCallback, Task, TaskStatus

logger = logging.getLogger(__name__)

# status a task is left in after a step -> how the step is reported
_OUTCOME_BY_STATUS: dict[TaskStatus, OutcomeKind] = {
    "ready": "continued",
    "stalled": "stalled",
    "completed": "completed",
    "failed": "failed",
    "cancelled": "cancelled",
}


class Kernel:
    """Single-threaded scheduler for generator-based tasks.

    Args:
        clock: Time source for ``run_for`` and the timing combinators.
            Defaults to :class:`~taskkernel.clock.MonotonicClock`.
        config: Runtime switches; defaults to ``KernelConfig()``.
        on_step: Optional callback invoked with a
            :class:`~taskkernel.observability.StepRecord` after every step that
            did work.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        config: KernelConfig | None = None,
        on_step: StepCallback | None = None,
    ) -> None:
        self.clock: Clock = clock if clock is not None else MonotonicClock()
        self.config = config if config is not None else KernelConfig()
        self._on_step = on_step
        self._ready: deque[Task] = deque()
        self._stalled: deque[Task] = deque()
        self._running: Task | None = None
        self._step_count = 0
        self._deferred: deque[TaskFailure] = deque()

    # ------------------------------------------------------------------
    # Task creation / cancellation
    # ------------------------------------------------------------------

    def add(
        self,
        computation: Generator[Any, Any, Any] | Callable[..., Any],
        args: Iterable[Any] = (),
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
        *,
        name: str | None = None,
    ) -> Task:
        """Queue a computation at the back of the ready queue.

        ``computation`` may be an already-created generator (``args`` must then
        be empty) or a callable started with ``args`` on its first resume.
        """
        task = Task(
            computation,
            tuple(args),
            on_complete=on_complete,
            on_error=on_error,
            name=name,
        )
        return self._enqueue(task)

    def call(
        self,
        fn: Callable[..., Any],
        args: Iterable[Any] = (),
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
        *,
        name: str | None = None,
        **kwargs: Any,
    ) -> Task:
        """Queue ``fn(*args, **kwargs)`` as a new task."""
        if inspect.isgenerator(fn) or not callable(fn):
            raise TypeError(
                f"call() expects a callable, got {type(fn).__name__}; use add() for generators"
            )
        task = Task(
            fn,
            tuple(args),
            FrozenDict(kwargs),
            on_complete=on_complete,
            on_error=on_error,
            name=name,
        )
        return self._enqueue(task)

    def _enqueue(self, task: Task) -> Task:
        task.status = "ready"
        self._ready.append(task)
        if self.config.debug:
            logger.debug("Task %s added (ready=%d)", task.label, len(self._ready))
        return task

    def remove(self, task: Task) -> bool:
        """Cancel ``task``.

        Returns ``True`` if the task was live in this kernel: either queued
        (it is removed immediately) or currently being resumed (it is dropped
        as soon as that resume returns).

        Never raises for task errors. If closing the task raises and it has
        no ``on_error``, the ``TaskFailure`` is raised by the next ``step``.
        """
        if task.is_terminal:
            return False
        if task is self._running:
            task.cancelled = True
            return True
        for queue in (self._ready, self._stalled):
            try:
                queue.remove(task)
            except ValueError:
                continue
            task.cancelled = True
            failure = self._drop_cancelled(task)
            if failure is not None:
                self._deferred.append(failure)
            return True
        return False

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def step(self) -> bool:
        """Resume one task. Returns ``False`` when there is nothing to do.

        Raises:
            TaskFailure: the resumed task raised and has no ``on_error``, or a
                task removed since the last step failed while closing.
        """
        if self._running is not None:
            raise KernelError(
                f"Kernel.step() called re-entrantly from task {self._running.label}"
            )
        if self._deferred:
            failure = self._deferred.popleft()
            raise failure from failure.original
        if not self._ready:
            if not self._stalled:
                return False
            # pivot: the stalled round becomes the ready round
            self._ready, self._stalled = self._stalled, self._ready

        task = self._ready.popleft()
        started = time.perf_counter()
        self._step_count += 1

        if task.cancelled:
            try:
                failure = self._drop_cancelled(task)
            finally:
                self._notify(task, started)
            if failure is not None:
                raise failure from failure.original
            return True

        task.status = "running"
        self._running = task
        try:
            with running(self, task):
                outcome = task.resume(capture_tracebacks=self.config.capture_tracebacks)
        finally:
            self._running = None

        # callbacks may raise; observers still see the step
        try:
            failure = self._file(task, outcome)
        finally:
            self._notify(task, started)
        if failure is not None:
            raise failure from failure.original
        return True

    def _file(self, task: Task, outcome: ResumeOutcome) -> TaskFailure | None:
        match outcome:
            case Failed(error=error, captured_traceback=tb):
                return self._fail(task, error, tb)

            case Done(value=value):
                if task.cancelled:
                    task.status = "cancelled"
                    return None
                task.status = "completed"
                if task.on_complete is not None:
                    task.on_complete(value)
                return None

            case Yielded(signal=signal):
                if task.cancelled:
                    return self._drop_cancelled(task)
                if signal is Signal.STALL:
                    task.status = "stalled"
                    self._stalled.append(task)
                    return None
                task.status = "ready"
                self._ready.append(task)
                return None

            case _:
                task.status = "failed"
                raise TypeError(f"Unknown resume outcome: {type(outcome).__name__}")

    def _fail(self, task: Task, error: BaseException, tb: str | None) -> TaskFailure | None:
        task.status = "failed"
        if task.on_error is not None:
            task.on_error(error)
            return None
        logger.error("Unhandled failure in task %s: %r", task.label, error)
        return TaskFailure(error, task, tb)

    def _drop_cancelled(self, task: Task) -> TaskFailure | None:
        task.status = "cancelled"
        if not self.config.close_cancelled:
            return None
        with running(self, task):
            closed = task.close(capture_tracebacks=self.config.capture_tracebacks)
        if closed is None:
            return None
        return self._fail(task, closed.error, closed.captured_traceback)

    def _notify(self, task: Task, started: float) -> None:
        kind = _OUTCOME_BY_STATUS[task.status]
        if self.config.debug:
            logger.debug(
                "step %d: %s %s (ready=%d, stalled=%d)",
                self._step_count,
                task.label,
                kind,
                len(self._ready),
                len(self._stalled),
            )
        if self._on_step is None:
            return
        self._on_step(
            StepRecord(
                step_count=self._step_count,
                task_id=task.task_id,
                task_label=task.label,
                outcome=kind,
                ready_count=len(self._ready),
                stalled_count=len(self._stalled),
                elapsed=time.perf_counter() - started,
            )
        )

    def run_for(self, budget: float, early_out: bool = False) -> int:
        """Step tasks until ``budget`` seconds of kernel-clock time elapse.

        Stops early when the kernel runs out of work, or, with ``early_out``,
        as soon as every remaining task is stalled. Returns the number of
        steps taken. A zero or negative budget is a no-op.
        """
        start = self.clock.now()
        steps = 0
        while self.clock.now() - start < budget:
            if not self.step():
                break
            steps += 1
            if early_out and not self._ready:
                break
        return steps

    def step_safe(self) -> Result[bool]:
        """Like :meth:`step`, but return ``Err(TaskFailure)`` instead of raising."""
        try:
            return Ok(self.step())
        except TaskFailure as failure:
            return Err(failure)

    def run_for_safe(self, budget: float, early_out: bool = False) -> Result[int]:
        """Like :meth:`run_for`, but return ``Err(TaskFailure)`` instead of raising."""
        try:
            return Ok(self.run_for(budget, early_out))
        except TaskFailure as failure:
            return Err(failure)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def add_timeout(self, f: Callable[[], Any], delay: float) -> Task:
        from taskkernel.combinators import add_timeout

        return add_timeout(self, f, delay)

    def add_interval(self, f: Callable[[], Any], delay: float) -> Task:
        from taskkernel.combinators import add_interval

        return add_interval(self, f, delay)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def ready_count(self) -> int:
        return len(self._ready)

    @property
    def stalled_count(self) -> int:
        return len(self._stalled)

    @property
    def running(self) -> Task | None:
        return self._running

    @property
    def is_idle(self) -> bool:
        return (
            not self._ready
            and not self._stalled
            and not self._deferred
            and self._running is None
        )

    def __len__(self) -> int:
        return len(self._ready) + len(self._stalled)

    def __contains__(self, task: object) -> bool:
        return task is self._running or task in self._ready or task in self._stalled

    def snapshot(self) -> KernelSnapshot:
        return KernelSnapshot(
            step_count=self._step_count,
            ready=tuple(TaskSnapshot.from_task(t) for t in self._ready),
            stalled=tuple(TaskSnapshot.from_task(t) for t in self._stalled),
            running=TaskSnapshot.from_task(self._running) if self._running is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"Kernel(ready={len(self._ready)}, stalled={len(self._stalled)}, "
            f"steps={self._step_count})"
        )


__all__ = ["Kernel"]
