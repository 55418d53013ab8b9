"""Kernel configuration.

Defaults live in ``DEFAULT_CONFIG``; callers override individual keys either
programmatically or through ``TASKKERNEL_*`` environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "debug": False,
    "capture_tracebacks": True,
    "close_cancelled": True,
}

_ENV_PREFIX = "TASKKERNEL_"
_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _parse_flag(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{name} must be one of {_TRUTHY + _FALSY}, got {raw!r}")


@dataclass(frozen=True)
class KernelConfig:
    """Runtime switches for a :class:`~taskkernel.kernel.Kernel`.

    Attributes:
        debug: Log every scheduling step at DEBUG level.
        capture_tracebacks: Format the failing task's traceback into
            ``TaskFailure``. Disable on hosts where walking a suspended
            generator's frames is not possible.
        close_cancelled: Close the generator of a cancelled task when it is
            dropped so its ``finally`` blocks run.
    """

    debug: bool = DEFAULT_CONFIG["debug"]
    capture_tracebacks: bool = DEFAULT_CONFIG["capture_tracebacks"]
    close_cancelled: bool = DEFAULT_CONFIG["close_cancelled"]

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, Any] | None = None) -> KernelConfig:
        config = {**DEFAULT_CONFIG}
        if overrides:
            unknown = set(overrides) - set(config)
            if unknown:
                raise KeyError(f"Unknown kernel config key(s): {sorted(unknown)}")
            config.update(overrides)
        return cls(**{key: bool(value) for key, value in config.items()})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KernelConfig:
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for config_field in fields(cls):
            var = f"{_ENV_PREFIX}{config_field.name.upper()}"
            raw = env.get(var)
            if raw is not None and raw != "":
                overrides[config_field.name] = _parse_flag(var, raw)
        return cls.from_mapping(overrides)

    def with_overrides(self, **overrides: Any) -> KernelConfig:
        return replace(self, **overrides)


__all__ = [
    "DEFAULT_CONFIG",
    "KernelConfig",
]
