"""Time sources consumed by the kernel and the timing combinators."""

from __future__ import annotations

import math
import time
from dataclasses import InitVar, dataclass, field
from typing import Protocol, runtime_checkable


def _coerce_finite_float(value: float, *, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"{name} must be float, got {type(value).__name__}")
    coerced = float(value)
    if math.isnan(coerced) or math.isinf(coerced):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return coerced


@runtime_checkable
class Clock(Protocol):
    def now(self) -> float: ...


class MonotonicClock:
    """Wall-clock seconds from ``time.monotonic``."""

    def now(self) -> float:
        return time.monotonic()

    def __repr__(self) -> str:
        return "MonotonicClock()"


@dataclass
class SimClock:
    """Virtual clock that only moves when told to.

    Used for deterministic tests and for hosts that drive the kernel from a
    simulated timeline.
    """

    start: InitVar[float] = 0.0
    _mut_current_time: float = field(init=False, default=0.0)

    def __post_init__(self, start: float) -> None:
        self._mut_current_time = _coerce_finite_float(start, name="start")

    def now(self) -> float:
        return self._mut_current_time

    @property
    def current_time(self) -> float:
        return self._mut_current_time

    def advance(self, seconds: float) -> float:
        delta = _coerce_finite_float(seconds, name="seconds")
        if delta < 0.0:
            raise ValueError("seconds must be >= 0.0")
        self._mut_current_time += delta
        return self.current_time

    def advance_to(self, target_time: float) -> float:
        target = _coerce_finite_float(target_time, name="target_time")
        if target > self._mut_current_time:
            self._mut_current_time = target
        return self.current_time

    def jump_to(self, new_time: float) -> float:
        self._mut_current_time = _coerce_finite_float(new_time, name="new_time")
        return self.current_time


__all__ = [
    "Clock",
    "MonotonicClock",
    "SimClock",
]
