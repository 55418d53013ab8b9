from __future__ import annotations

import pytest

from taskkernel import Kernel, SimClock


@pytest.fixture
def sim_clock() -> SimClock:
    return SimClock()


@pytest.fixture
def kernel(sim_clock: SimClock) -> Kernel:
    return Kernel(clock=sim_clock)
