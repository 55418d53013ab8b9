from __future__ import annotations

import asyncio

import pytest

from taskkernel import Kernel, SimClock, drive, run_ticks, stall, wait


class TestRunTicks:
    def test_counts_busy_ticks(self) -> None:
        clock = SimClock()
        kernel = Kernel(clock=clock)
        fired: list[float] = []

        def sleeper():
            yield from wait(2.0)
            fired.append(clock.now())

        kernel.call(sleeper)

        busy = 0
        for _ in range(5):
            busy += run_ticks(kernel, budget=0.016, ticks=1)
            clock.advance(1.0)

        assert fired == [2.0]
        assert busy == 3
        assert kernel.is_idle

    def test_idle_kernel_does_no_work(self) -> None:
        kernel = Kernel(clock=SimClock())
        assert run_ticks(kernel, budget=0.016, ticks=10) == 0
        assert kernel.step_count == 0

    def test_rejects_negative_ticks(self) -> None:
        with pytest.raises(ValueError, match="ticks"):
            run_ticks(Kernel(), budget=0.1, ticks=-1)


class TestDrive:
    @pytest.mark.asyncio
    async def test_drive_runs_until_idle(self) -> None:
        kernel = Kernel()
        results: list[str] = []

        def body():
            yield stall()
            yield stall()
            return "finished"

        kernel.call(body, on_complete=results.append)
        ticks = await drive(kernel, budget=0.01, interval=0)

        assert results == ["finished"]
        assert ticks == 3
        assert kernel.is_idle

    @pytest.mark.asyncio
    async def test_drive_shares_the_event_loop(self) -> None:
        kernel = Kernel()
        seen: list[str] = []

        async def other() -> None:
            seen.append("other")

        def body():
            yield stall()
            return None

        kernel.call(body)
        other_task = asyncio.create_task(other())
        await drive(kernel, budget=0.01, interval=0)
        await other_task

        assert seen == ["other"]

    @pytest.mark.asyncio
    async def test_drive_respects_max_ticks(self) -> None:
        kernel = Kernel()

        def forever():
            while True:
                yield stall()

        kernel.call(forever)
        ticks = await drive(kernel, budget=0.001, interval=0, max_ticks=4)

        assert ticks == 4
        assert kernel.stalled_count == 1

    @pytest.mark.asyncio
    async def test_drive_requires_a_bound(self) -> None:
        with pytest.raises(ValueError, match="max_ticks"):
            await drive(Kernel(), budget=0.01, interval=0, until_idle=False)
