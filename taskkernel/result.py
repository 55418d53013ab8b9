"""Task resume outcomes.

A resume ends in exactly one of three ways, and the kernel's scheduling
decision is a pure function of which one:

    Yielded(Signal.STALL)    -> back of the stalled queue
    Yielded(Signal.CONTINUE) -> back of the ready queue
    Done(value)              -> on_complete(value), task dropped
    Failed(error, traceback) -> on_error(error) or TaskFailure, task dropped
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias


class Signal(Enum):
    STALL = "stall"
    CONTINUE = "continue"

    def __repr__(self) -> str:
        return f"Signal.{self.name}"


STALL = Signal.STALL


@dataclass(frozen=True)
class Yielded:
    """The computation suspended and wants to be resumed later."""

    signal: Signal


@dataclass(frozen=True)
class Done:
    """Terminal: computation returned."""

    value: Any


@dataclass(frozen=True)
class Failed:
    """Terminal: computation raised.

    ``captured_traceback`` is the failing task's traceback formatted at the
    point of failure, or ``None`` when capture was skipped.
    """

    error: BaseException
    captured_traceback: str | None = None


ResumeOutcome: TypeAlias = Yielded | Done | Failed


def classify_yield(value: Any) -> Yielded:
    """Map a raw yielded value to its scheduling signal."""
    if value is Signal.STALL:
        return Yielded(Signal.STALL)
    return Yielded(Signal.CONTINUE)


__all__ = [
    "STALL",
    "Done",
    "Failed",
    "ResumeOutcome",
    "Signal",
    "Yielded",
    "classify_yield",
]
