from __future__ import annotations

import logging

import pytest

from taskkernel import STALL, Done, Failed, Signal, Task, Yielded
from taskkernel._vendor import FrozenDict
from taskkernel.task import capture_traceback


def _counter(limit: int):
    for _ in range(limit):
        yield
    return limit


class TestResume:
    def test_callable_is_started_with_args(self) -> None:
        task = Task(_counter, (2,))
        assert task.resume() == Yielded(Signal.CONTINUE)
        assert task.resume() == Yielded(Signal.CONTINUE)
        assert task.resume() == Done(2)
        assert task.resume_count == 3

    def test_plain_callable_completes_on_first_resume(self) -> None:
        task = Task(lambda a, b: a + b, (1, 2))
        assert task.resume() == Done(3)

    def test_stall_yield_is_classified(self) -> None:
        def body():
            yield STALL

        task = Task(body)
        assert task.resume() == Yielded(Signal.STALL)

    def test_any_other_yield_continues(self) -> None:
        def body():
            yield "stall"

        assert Task(body).resume() == Yielded(Signal.CONTINUE)

    def test_exceptions_become_failed_outcomes(self) -> None:
        def body():
            yield
            raise RuntimeError("boom")

        task = Task(body)
        task.resume()
        outcome = task.resume()

        assert isinstance(outcome, Failed)
        assert isinstance(outcome.error, RuntimeError)
        assert outcome.captured_traceback is not None
        assert "boom" in outcome.captured_traceback

    def test_traceback_capture_can_be_skipped(self) -> None:
        def broken():
            raise RuntimeError("boom")

        outcome = Task(broken).resume(capture_tracebacks=False)

        assert isinstance(outcome, Failed)
        assert outcome.captured_traceback is None


class TestConstruction:
    def test_kwargs_are_frozen(self) -> None:
        task = Task(_counter, kwargs={"limit": 1})  # type: ignore[arg-type]
        assert isinstance(task.kwargs, FrozenDict)
        assert task.resume() == Yielded(Signal.CONTINUE)

    def test_name_defaults_to_function_name(self) -> None:
        assert Task(_counter, (1,)).name == "_counter"
        assert Task(_counter(1)).name == "_counter"

    def test_label_includes_id_and_name(self) -> None:
        task = Task(_counter, (1,), name="count")
        assert task.label == f"#{task.task_id} count"

    def test_task_ids_increase(self) -> None:
        first = Task(_counter, (1,))
        second = Task(_counter, (1,))
        assert second.task_id > first.task_id

    def test_generator_rejects_args(self) -> None:
        with pytest.raises(TypeError, match="already-created generator"):
            Task(_counter(1), (1,))

    def test_non_callable_is_rejected(self) -> None:
        with pytest.raises(TypeError, match="generator or callable"):
            Task(42)  # type: ignore[arg-type]


class TestClose:
    def test_close_runs_finally(self) -> None:
        cleaned: list[str] = []

        def body():
            try:
                yield
            finally:
                cleaned.append("cleaned")

        task = Task(body)
        task.resume()
        assert task.close() is None
        assert cleaned == ["cleaned"]

    def test_close_before_start_is_a_noop(self) -> None:
        assert Task(_counter, (1,)).close() is None

    def test_close_reports_failures_from_finally(self) -> None:
        def body():
            try:
                yield
            finally:
                raise ValueError("cleanup failed")

        task = Task(body)
        task.resume()
        closed = task.close()

        assert isinstance(closed, Failed)
        assert isinstance(closed.error, ValueError)


def test_capture_traceback_formats_raised_error() -> None:
    try:
        raise KeyError("missing")
    except KeyError as error:
        tb = capture_traceback(error)

    assert tb is not None
    assert "KeyError" in tb


def test_capture_traceback_degrades_to_none(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    from taskkernel import Kernel, SimClock, TaskFailure

    def unformattable(error: BaseException) -> None:
        raise ValueError("x")

    monkeypatch.setattr("taskkernel.task.trace_err", unformattable)
    kernel = Kernel(clock=SimClock())

    def broken():
        raise RuntimeError("boom")

    kernel.call(broken)
    with caplog.at_level(logging.WARNING, logger="taskkernel.task"):
        with pytest.raises(TaskFailure) as exc_info:
            kernel.step()

    assert exc_info.value.captured_traceback is None
    assert isinstance(exc_info.value.original, RuntimeError)
    assert "boom" in exc_info.value.format_full()
    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "Skipping task traceback capture for RuntimeError" in warnings[0].getMessage()
