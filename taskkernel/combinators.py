"""Task-level helpers built only on the kernel's public surface.

Generators cannot suspend from inside a nested plain call, so helpers that
suspend return a generator to be delegated to with ``yield from``:

    def worker():
        yield from wait(0.5)
        ready = yield from value(lambda: cache.get("key"))
        a, b = yield from await_all([fetch_a, fetch_b])
        return a + b

    kernel.call(worker)

Every helper that suspends checks, at the moment it is *called*, that it is
running inside a task and raises ``MisuseError`` otherwise.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Generator, Iterable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from taskkernel.context import require_task
from taskkernel.errors import KernelError
from taskkernel.result import STALL, Signal

if TYPE_CHECKING:
    from taskkernel.kernel import Kernel
    from taskkernel.task import Task

T = TypeVar("T")

TaskGenerator = Generator[Any, Any, T]


def stall() -> Signal:
    """Return the stall signal; the caller must ``yield`` it.

    ``yield stall()`` parks the task until every other ready task has had a
    turn.
    """
    require_task("stall", "yield stall() from a task body")
    return STALL


def wait(duration: float) -> TaskGenerator[None]:
    """Stall until ``duration`` seconds of kernel-clock time have passed."""
    entry = require_task("wait", "waiting outside a task would block forever")
    clock = entry.kernel.clock
    return _wait(clock, clock.now(), duration)


def _wait(clock: Any, started: float, duration: float) -> TaskGenerator[None]:
    while clock.now() - started < duration:
        yield STALL


def value(poll_fn: Callable[[], T | None]) -> TaskGenerator[T]:
    """Poll ``poll_fn`` once per round until it returns something truthy."""
    require_task("value")
    return _poll(poll_fn)


def _poll(poll_fn: Callable[[], T | None]) -> TaskGenerator[T]:
    result = poll_fn()
    while not result:
        yield STALL
        result = poll_fn()
    return result


def wrap_iterator(
    f: Callable[..., T],
    should_stall: bool = False,
    every_n: int = 1,
) -> Callable[..., TaskGenerator[T]]:
    """Spread a tight loop across scheduler turns.

    Returns a wrapper around ``f``; every ``every_n``-th call suspends before
    calling through, either stalling (``should_stall``) or yielding a plain
    continuation. Use it as ``result = yield from wrapped(*args)``.
    """
    if every_n < 1:
        raise ValueError(f"every_n must be >= 1, got {every_n}")
    signal = STALL if should_stall else Signal.CONTINUE
    calls = 0

    @functools.wraps(f)
    def wrapped(*args: Any, **kwargs: Any) -> TaskGenerator[T]:
        nonlocal calls
        calls += 1
        suspend = calls % every_n == 0
        if suspend:
            require_task("wrap_iterator")
        return _suspend_then_call(suspend, signal, f, args, kwargs)

    return wrapped


def _suspend_then_call(
    suspend: bool,
    signal: Signal,
    f: Callable[..., T],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> TaskGenerator[T]:
    if suspend:
        yield signal
    return f(*args, **kwargs)


def add_timeout(kernel: Kernel, f: Callable[[], Any], delay: float) -> Task:
    """Schedule ``f`` to run once after ``delay`` seconds."""

    def timeout() -> TaskGenerator[None]:
        yield from wait(delay)
        f()

    return kernel.call(timeout, name=f"timeout({_name_of(f)})")


def add_interval(kernel: Kernel, f: Callable[[], Any], delay: float) -> Task:
    """Run ``f`` every ``delay`` seconds until the returned task is removed."""

    def interval() -> TaskGenerator[None]:
        while True:
            yield from wait(delay)
            f()

    return kernel.call(interval, name=f"interval({_name_of(f)})")


def await_all(
    fns: Callable[..., Any] | Sequence[Callable[..., Any]],
    args: Iterable[Any] = (),
) -> TaskGenerator[Any]:
    """Fan out ``fns`` as sibling tasks and wait for all of them.

    Each function is started with ``args`` as its own task on the current
    kernel. Results come back in the order of ``fns``; a single function (not
    wrapped in a list) returns its bare result.

    The first sibling failure cancels the siblings still pending and is
    re-raised in the awaiting task. A sibling cancelled by someone else counts
    as a failure and raises ``KernelError``. Cancelling the awaiting task
    cancels its pending siblings.
    """
    entry = require_task("await_all")
    single = callable(fns)
    functions = [fns] if single else list(fns)
    return _await_all(entry.kernel, functions, tuple(args), single)


def _await_all(
    kernel: Kernel,
    functions: list[Callable[..., Any]],
    args: tuple[Any, ...],
    single: bool,
) -> TaskGenerator[Any]:
    results: list[Any] = [None] * len(functions)
    errors: list[BaseException] = []
    pending = len(functions)
    children: list[Task] = []

    def on_complete(index: int, result: Any) -> None:
        nonlocal pending
        results[index] = result
        pending -= 1

    def on_error(error: BaseException) -> None:
        nonlocal pending
        errors.append(error)
        pending -= 1

    for index, fn in enumerate(functions):
        children.append(
            kernel.call(
                fn,
                args,
                on_complete=functools.partial(on_complete, index),
                on_error=on_error,
            )
        )

    try:
        while pending > 0 and not errors:
            yield STALL
            # a cancelled child never reports back
            for child in children:
                if child.status == "cancelled":
                    errors.append(KernelError(f"awaited task {child.label} was cancelled"))
                    break
    finally:
        for child in children:
            if not child.is_terminal:
                kernel.remove(child)

    if errors:
        raise errors[0]
    return results[0] if single else results


def _name_of(f: Callable[..., Any]) -> str:
    return getattr(f, "__name__", None) or type(f).__name__


__all__ = [
    "add_interval",
    "add_timeout",
    "await_all",
    "stall",
    "value",
    "wait",
    "wrap_iterator",
]
