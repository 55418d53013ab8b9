from __future__ import annotations

from typing import Any

import pytest
from loguru import logger as loguru_logger

from taskkernel import Kernel, SimClock, StepRecord, TaskFailure, log_steps, stall


def _stall_once():
    yield stall()
    return "done"


def test_on_step_records_each_outcome() -> None:
    records: list[StepRecord] = []
    kernel = Kernel(clock=SimClock(), on_step=records.append)

    kernel.call(_stall_once)
    kernel.call(lambda: "fast")
    while kernel.step():
        pass

    assert [record.outcome for record in records] == ["stalled", "completed", "completed"]
    assert [record.step_count for record in records] == [1, 2, 3]
    assert records[0].stalled_count == 1
    assert records[0].ready_count == 1
    assert all(record.elapsed >= 0.0 for record in records)


def test_on_step_reports_failures_before_escalating() -> None:
    records: list[StepRecord] = []
    kernel = Kernel(clock=SimClock(), on_step=records.append)

    def broken():
        raise ValueError("bad")

    kernel.call(broken)
    with pytest.raises(TaskFailure):
        kernel.step()

    assert [record.outcome for record in records] == ["failed"]


def test_on_step_reports_cancelled_tasks() -> None:
    records: list[StepRecord] = []
    kernel = Kernel(clock=SimClock(), on_step=records.append)
    task = kernel.call(lambda: None)
    task.cancelled = True

    kernel.step()

    assert records[0].outcome == "cancelled"


def test_snapshot_describes_queues() -> None:
    kernel = Kernel(clock=SimClock())
    staller = kernel.call(_stall_once, name="staller")
    kernel.call(lambda: None, name="later")
    kernel.step()

    snapshot = kernel.snapshot()

    assert snapshot.step_count == 1
    assert snapshot.ready_count == 1
    assert snapshot.stalled_count == 1
    assert snapshot.ready[0].name == "later"
    assert snapshot.stalled[0].task_id == staller.task_id
    assert snapshot.stalled[0].status == "stalled"
    assert snapshot.stalled[0].resume_count == 1
    assert snapshot.running is None
    assert not snapshot.is_idle


def test_snapshot_from_inside_task_shows_running() -> None:
    kernel = Kernel(clock=SimClock())
    seen: list[Any] = []

    def body():
        seen.append(kernel.snapshot())
        yield

    kernel.call(body, name="body")
    kernel.step()

    assert seen[0].running is not None
    assert seen[0].running.name == "body"
    assert seen[0].running.status == "running"


def test_log_steps_writes_through_loguru() -> None:
    messages: list[str] = []
    sink_id = loguru_logger.add(lambda message: messages.append(str(message)), level="DEBUG", format="{message}")
    try:
        kernel = Kernel(clock=SimClock(), on_step=log_steps())
        kernel.call(lambda: None, name="traced")
        kernel.step()
    finally:
        loguru_logger.remove(sink_id)

    assert len(messages) == 1
    assert "traced completed" in messages[0]
    assert "ready=0" in messages[0]


def test_on_step_sees_steps_whose_callback_raises() -> None:
    records: list[StepRecord] = []
    kernel = Kernel(clock=SimClock(), on_step=records.append)

    def explode(result: Any) -> None:
        raise LookupError(result)

    kernel.call(lambda: "value", on_complete=explode, name="noisy")

    with pytest.raises(LookupError):
        kernel.step()

    assert len(records) == 1
    assert records[0].outcome == "completed"
    assert records[0].task_label.endswith("noisy")
    assert kernel.is_idle
