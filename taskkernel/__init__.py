"""taskkernel - cooperative task scheduling inside a host update loop.

Tasks are generators. A task runs until it returns, raises, or yields;
``yield stall()`` parks it until everything else has had a turn.

    from taskkernel import Kernel, wait

    kernel = Kernel()

    def blink(times):
        for _ in range(times):
            toggle_light()
            yield from wait(0.5)
        return times

    kernel.call(blink, (3,), on_complete=print)

    while running:
        kernel.run_for(0.002, early_out=True)  # once per frame
"""

from taskkernel._vendor import Err, Ok, Result
from taskkernel.clock import Clock, MonotonicClock, SimClock
from taskkernel.combinators import (
    add_interval,
    add_timeout,
    await_all,
    stall,
    value,
    wait,
    wrap_iterator,
)
from taskkernel.config import DEFAULT_CONFIG, KernelConfig
from taskkernel.context import current_kernel, current_task
from taskkernel.errors import KernelError, MisuseError, TaskFailure
from taskkernel.host import drive, run_ticks
from taskkernel.kernel import Kernel
from taskkernel.observability import (
    KernelSnapshot,
    StepRecord,
    TaskSnapshot,
    log_steps,
)
from taskkernel.result import STALL, Done, Failed, Signal, Yielded
from taskkernel.task import Task, TaskStatus

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "STALL",
    "Clock",
    "Done",
    "Err",
    "Failed",
    "Kernel",
    "KernelConfig",
    "KernelError",
    "KernelSnapshot",
    "MisuseError",
    "MonotonicClock",
    "Ok",
    "Result",
    "Signal",
    "SimClock",
    "StepRecord",
    "Task",
    "TaskFailure",
    "TaskSnapshot",
    "TaskStatus",
    "Yielded",
    "add_interval",
    "add_timeout",
    "await_all",
    "current_kernel",
    "current_task",
    "drive",
    "log_steps",
    "run_ticks",
    "stall",
    "value",
    "wait",
    "wrap_iterator",
]
