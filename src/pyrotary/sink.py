"""Observable state fed by an event channel.

The sink owns the latest angle and bucket load readings.  Every
mutation swaps in a new frozen :class:`SensorState` snapshot, so a
presentation layer (possibly on another thread) can read ``sink.state``
at any time without locking.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from pyrotary.channel import EventChannel
from pyrotary.events import AngleChanged, BucketLoadChanged
from pyrotary.exceptions import SensorFailure

_logger = logging.getLogger(__name__)


class SinkStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SensorState(BaseModel):
    """Immutable snapshot of everything the sink has observed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    angle: int = 0
    bucket_load: int = 0
    status: SinkStatus = SinkStatus.IDLE
    error: str | None = None
    version: int = 0
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (SinkStatus.COMPLETED, SinkStatus.FAILED, SinkStatus.CANCELLED)


class StateSink:
    """Consumes a channel subscription and republishes the latest readings.

    Usage::

        async with StateSink(EventChannel()) as sink:
            await sink.wait_for_update(1.0)
            print(sink.angle)
    """

    def __init__(
        self,
        channel: EventChannel,
        *,
        on_change: Callable[[SensorState], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._channel = channel
        self._logger = logger or _logger
        self._state = SensorState()
        self._failure: SensorFailure | None = None
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[Callable[[SensorState], None]] = []
        self._waiters: list[asyncio.Event] = []
        if on_change is not None:
            self._listeners.append(on_change)

    # ------------------------------------------------------------------
    # Readable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SensorState:
        return self._state

    @property
    def angle(self) -> int:
        return self._state.angle

    @property
    def bucket_load(self) -> int:
        return self._state.bucket_load

    @property
    def status(self) -> SinkStatus:
        return self._state.status

    @property
    def failure(self) -> SensorFailure | None:
        """The upstream failure that ended consumption, if any."""
        return self._failure

    def add_listener(self, listener: Callable[[SensorState], None]) -> Callable[[], None]:
        """Call *listener* with every new snapshot.  Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StateSink:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def start(self) -> None:
        """Begin consuming the channel on the running event loop."""
        if self._task is not None:
            return
        self._logger.debug("State sink starting")
        self._task = asyncio.get_running_loop().create_task(self._consume(), name="rotary-state-sink")

    async def close(self) -> None:
        """End the session: cancel consumption and release the subscription."""
        task = self._task
        if task is None or task.done():
            return
        self._logger.debug("State sink close requested")
        task.cancel()
        await asyncio.wait({task})
        # Cancelled before its first step: the consume loop never ran.
        if not self._state.is_terminal:
            self._update(status=SinkStatus.CANCELLED)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply(self, event: AngleChanged | BucketLoadChanged) -> None:
        """Overwrite the field matching *event*'s kind."""
        if self._state.is_terminal:
            self._logger.debug("Dropping %s after sink terminated", event.kind)
            return
        if isinstance(event, AngleChanged):
            self._update(angle=event.angle)
        elif isinstance(event, BucketLoadChanged):
            self._update(bucket_load=event.load)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    async def wait_for_update(self, timeout_seconds: float) -> bool:
        """Wait until the next state change.  Returns ``False`` on timeout."""
        if timeout_seconds <= 0:
            return False

        baseline = self._state.version
        waiter = asyncio.Event()
        self._waiters.append(waiter)

        if self._state.version != baseline:
            waiter.set()

        try:
            await asyncio.wait_for(waiter.wait(), timeout_seconds)
            return True
        except TimeoutError:
            return False
        finally:
            self._waiters = [cand for cand in self._waiters if cand is not waiter]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _consume(self) -> None:
        subscription = self._channel.subscribe()
        self._update(status=SinkStatus.RUNNING)
        try:
            async for event in subscription:
                self.apply(event)
        except SensorFailure as exc:
            self._failure = exc
            self._logger.warning("State sink stopped on upstream failure: %s", exc)
            self._update(status=SinkStatus.FAILED, error=str(exc))
        except asyncio.CancelledError:
            self._update(status=SinkStatus.CANCELLED)
            raise
        else:
            self._update(status=SinkStatus.COMPLETED)
        finally:
            await subscription.aclose()
            self._logger.debug("State sink stopped status=%s", self._state.status)

    def _update(self, **changes: Any) -> None:
        changes["version"] = self._state.version + 1
        changes["updated_at"] = datetime.now(UTC)
        self._state = self._state.model_copy(update=changes)

        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                self._logger.debug("State listener failed", exc_info=True)

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.is_set():
                waiter.set()
