"""Custom exception hierarchy for pyrotary."""

from __future__ import annotations


class RotaryError(Exception):
    """Base exception for all pyrotary errors."""


class RotaryConfigError(RotaryError):
    """Invalid or missing configuration."""


class SensorFailure(RotaryError):
    """The device source loop failed and stopped producing events.

    Delivered out-of-band through ``EventCallback.on_error`` rather than
    as an event.  The original exception is kept on ``cause`` (and as
    ``__cause__``).
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ChannelError(RotaryError):
    """Misuse of an event channel subscription."""


class ChannelClosedError(ChannelError):
    """An event was sent into a subscription that is already closed."""


class ChannelFullError(ChannelError):
    """The subscription buffer is full and the overflow policy is ``fail``."""

    def __init__(self, message: str, *, capacity: int = 0) -> None:
        self.capacity = capacity
        super().__init__(message)
