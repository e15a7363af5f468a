"""Simulated USB rotary sensor.

The source pushes events into an :class:`EventCallback` on its own
schedule, independent of whoever consumes them.  Its loop runs as an
asyncio task owned by the caller of :meth:`RotarySensorSource.start`,
which can stop it at any time.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from pyrotary.config import DEFAULT_INTERVAL
from pyrotary.events import AngleChanged, BucketLoadChanged
from pyrotary.exceptions import SensorFailure

SleepFn = Callable[[float], Awaitable[None]]


class EventCallback(Protocol):
    """Receiver of events pushed by a device source."""

    async def on_event(self, event: AngleChanged | BucketLoadChanged) -> None: ...

    async def on_error(self, error: SensorFailure) -> None: ...


@runtime_checkable
class DeviceSource(Protocol):
    """Anything that can push events into a callback until stopped."""

    @property
    def is_running(self) -> bool: ...

    def start(self, callback: EventCallback) -> asyncio.Task[None]: ...

    def stop(self) -> None: ...


class RotarySensorSource:
    """Emits ``AngleChanged`` events with an increasing angle every *interval* seconds."""

    def __init__(
        self,
        *,
        interval: float = DEFAULT_INTERVAL,
        sleep: SleepFn = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._interval = interval
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)
        self._task: asyncio.Task[None] | None = None
        self._callback: EventCallback | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        """Whether the emission loop is alive."""
        return self._task is not None and not self._task.done()

    def start(self, callback: EventCallback) -> asyncio.Task[None]:
        """Launch the emission loop on the running event loop.

        Returns immediately.  Any loop started earlier by this source is
        stopped first.
        """
        self.stop()
        self._logger.debug("Rotary source start requested interval=%s", self._interval)
        self._callback = callback
        task = asyncio.get_running_loop().create_task(self._run(callback), name="rotary-sensor-source")
        self._task = task
        return task

    def stop(self) -> None:
        """Cancel the emission loop if it is running."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # Called from within the loop (e.g. via on_error); it is already exiting.
            return
        self._logger.debug("Rotary source stop requested")
        task.cancel()

    async def _run(self, callback: EventCallback) -> None:
        angle = 0
        try:
            while True:
                await callback.on_event(AngleChanged(angle=angle))
                angle += 1
                await self._sleep(self._interval)
        except asyncio.CancelledError:
            self._logger.debug("Rotary source cancelled at angle=%d", angle)
            raise
        except Exception as exc:
            self._logger.warning("Rotary source failed at angle=%d: %s", angle, exc)
            try:
                await callback.on_error(SensorFailure(f"Rotary sensor loop failed: {exc}", cause=exc))
            except Exception:
                self._logger.debug("on_error callback failed", exc_info=True)
        finally:
            if self._callback is callback:
                self._callback = None
