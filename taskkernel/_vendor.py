"""
Small result and traceback helpers used by ``Kernel.step_safe`` /
``Kernel.run_for_safe`` and by task traceback capture.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

from frozendict import frozendict

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Result(Generic[T_co]):
    """Either ``Ok(value)`` or ``Err(error)``."""

    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def ok(self) -> T_co | None:
        """The value of an ``Ok``; ``None`` for an ``Err``."""
        return self.value if isinstance(self, Ok) else None

    def unwrap(self) -> T_co:
        """The value of an ``Ok``; an ``Err`` raises its error."""
        if isinstance(self, Ok):
            return self.value
        raise self.error

    def unwrap_err(self) -> Exception:
        if isinstance(self, Err):
            return self.error
        raise RuntimeError("unwrap_err() called on an Ok result")


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    error: Exception


@dataclass(frozen=True)
class TraceError:
    """An exception paired with its traceback, formatted where it was caught."""

    exc: BaseException
    tb: str


def trace_err(e: BaseException) -> TraceError:
    return TraceError(e, "".join(traceback.format_exception(type(e), e, e.__traceback__)))


FrozenDict = frozendict

__all__ = [
    "Err",
    "FrozenDict",
    "Ok",
    "Result",
    "TraceError",
    "trace_err",
]
