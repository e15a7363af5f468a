"""Pipeline configuration for pyrotary."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pyrotary.exceptions import RotaryConfigError

#: Emission interval of the simulated sensor, in seconds.
DEFAULT_INTERVAL: float = 0.1

#: Default subscription buffer capacity.  Matches the usual buffered
#: channel size of callback-driven producers.
DEFAULT_BUFFER_SIZE: int = 64


class OverflowPolicy(StrEnum):
    """What a producer does when the subscription buffer is full."""

    BLOCK = "block"
    FAIL = "fail"


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise RotaryConfigError(f"{name} must be a number, got {value!r}") from exc


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise RotaryConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class SensorConfig:
    """Pipeline configuration.

    Parameters
    ----------
    interval : float
        Seconds between two consecutive angle emissions.
    buffer_size : int
        Capacity of each subscription buffer.  ``0`` means unbounded.
    overflow : OverflowPolicy
        ``block`` suspends the producer until the consumer catches up,
        ``fail`` raises :class:`~pyrotary.exceptions.ChannelFullError`.
    """

    interval: float = DEFAULT_INTERVAL
    buffer_size: int = DEFAULT_BUFFER_SIZE
    overflow: OverflowPolicy = OverflowPolicy.BLOCK

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise RotaryConfigError(f"interval must be positive, got {self.interval!r}")
        if self.buffer_size < 0:
            raise RotaryConfigError(f"buffer_size must be >= 0, got {self.buffer_size!r}")
        try:
            overflow = OverflowPolicy(str(self.overflow).strip().lower())
        except ValueError as exc:
            raise RotaryConfigError(f"overflow must be 'block' or 'fail', got {self.overflow!r}") from exc
        object.__setattr__(self, "overflow", overflow)

    @classmethod
    def from_env(cls, **overrides: Any) -> SensorConfig:
        """Create configuration from environment variables.

        Reads ``ROTARY_INTERVAL``, ``ROTARY_BUFFER_SIZE`` and
        ``ROTARY_OVERFLOW``.  Explicit keyword arguments override
        environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        interval_env = env.get("ROTARY_INTERVAL")
        if interval_env is not None and "interval" not in overrides:
            config_kwargs["interval"] = _env_float("ROTARY_INTERVAL", interval_env)

        buffer_env = env.get("ROTARY_BUFFER_SIZE")
        if buffer_env is not None and "buffer_size" not in overrides:
            config_kwargs["buffer_size"] = _env_int("ROTARY_BUFFER_SIZE", buffer_env)

        overflow_env = env.get("ROTARY_OVERFLOW")
        if overflow_env is not None and "overflow" not in overrides:
            config_kwargs["overflow"] = overflow_env

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
