"""Taskkernel game-loop demo: tasks spread across frames.

Run with: uv run python examples/game_loop_demo.py

A fake host loop ticks the kernel once per 1/60 s frame on a simulated
clock. The demo shows:
  - wait()       : a cutscene that pauses between lines
  - value()      : a task that blocks until an asset finishes "loading"
  - await_all()  : a parent fanning out children and collecting results
  - add_interval : a heartbeat removed after a few beats
  - log_steps()  : the per-step trace, written through loguru
"""

import sys

from loguru import logger

from taskkernel import (
    Kernel,
    SimClock,
    await_all,
    log_steps,
    run_ticks,
    stall,
    value,
    wait,
)

FRAME = 1 / 60

assets: dict[str, str] = {}


# -- tasks -------------------------------------------------------------------


def cutscene():
    for line in ("The door creaks.", "Something moves.", "Run!"):
        print(f"  [cutscene] {line}")
        yield from wait(0.1)
    return "cutscene over"


def loader():
    for _ in range(3):
        yield stall()
    assets["hero"] = "hero.png"


def spawn_hero():
    sprite = yield from value(lambda: assets.get("hero"))
    print(f"  [spawn] hero ready with {sprite}")
    return sprite


def score(points):
    yield stall()
    return points * 10


def tally():
    totals = yield from await_all([score, score, score], (7,))
    print(f"  [tally] totals={totals}")
    return sum(totals)


# -- demo --------------------------------------------------------------------


def main():
    clock = SimClock()
    trace = "--trace" in sys.argv
    if trace:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG", format="{message}")
    kernel = Kernel(clock=clock, on_step=log_steps() if trace else None)

    beats = []
    heartbeat = kernel.add_interval(lambda: beats.append(clock.now()), 0.05)

    kernel.call(cutscene, on_complete=lambda result: print(f"  [done] {result}"))
    kernel.call(loader)
    kernel.call(spawn_hero)
    kernel.call(tally, on_complete=lambda total: print(f"  [done] tally={total}"))

    frame = 0
    while not kernel.is_idle:
        run_ticks(kernel, budget=FRAME, ticks=1)
        clock.advance(FRAME)
        frame += 1
        if len(beats) >= 4 and heartbeat in kernel:
            kernel.remove(heartbeat)
            print(f"  [heartbeat] stopped after {len(beats)} beats")

    print(f"\nidle after {frame} frames, {kernel.step_count} steps")


if __name__ == "__main__":
    main()
