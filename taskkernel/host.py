"""Host-loop drivers.

A host embeds the kernel by calling ``Kernel.run_for`` once per update tick
with a bounded budget. These helpers cover the two common hosts: a plain
synchronous loop and an asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskkernel.kernel import Kernel

logger = logging.getLogger(__name__)


def run_ticks(
    kernel: Kernel,
    *,
    budget: float,
    ticks: int,
    early_out: bool = True,
) -> int:
    """Run ``ticks`` update ticks, each bounded by ``budget`` seconds.

    Returns the number of ticks that found queued work.
    """
    if ticks < 0:
        raise ValueError(f"ticks must be >= 0, got {ticks}")
    busy = 0
    for _ in range(ticks):
        if kernel.is_idle:
            continue
        kernel.run_for(budget, early_out)
        busy += 1
    return busy


async def drive(
    kernel: Kernel,
    *,
    budget: float,
    interval: float,
    early_out: bool = True,
    until_idle: bool = True,
    max_ticks: int | None = None,
) -> int:
    """Drive ``kernel`` from an asyncio event loop.

    Each tick runs the kernel for at most ``budget`` seconds and then sleeps
    ``interval`` seconds so other coroutines get the loop. Stops when the
    kernel goes idle (with ``until_idle``) or after ``max_ticks`` ticks.
    Returns the number of ticks run.
    """
    if until_idle is False and max_ticks is None:
        raise ValueError("drive() needs until_idle=True or a max_ticks bound")
    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        if until_idle and kernel.is_idle:
            break
        kernel.run_for(budget, early_out)
        ticks += 1
        await asyncio.sleep(interval)
    logger.debug("drive() finished after %d tick(s): %r", ticks, kernel)
    return ticks


__all__ = [
    "drive",
    "run_ticks",
]
