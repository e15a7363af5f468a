"""Push-to-pull bridge between a device source and an async consumer.

A :class:`Subscription` hands its own callback to a freshly created
device source and exposes the pushed events as an ``async for``
sequence.  The sequence is single-consumer, lazy (the source starts on
first pull) and cannot be restarted once closed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Final, NoReturn

from pyrotary.config import DEFAULT_BUFFER_SIZE, OverflowPolicy
from pyrotary.events import AngleChanged, BucketLoadChanged
from pyrotary.exceptions import ChannelClosedError, ChannelError, ChannelFullError, SensorFailure
from pyrotary.source import DeviceSource, EventCallback, RotarySensorSource

_logger = logging.getLogger(__name__)

_CLOSED: Final = object()


class _SubscriptionCallback:
    """Callback handed to the device source; forwards into the subscription."""

    def __init__(self, subscription: Subscription) -> None:
        self._subscription = subscription

    async def on_event(self, event: AngleChanged | BucketLoadChanged) -> None:
        if isinstance(event, (AngleChanged, BucketLoadChanged)):
            await self._subscription.send(event)
            return
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    async def on_error(self, error: SensorFailure) -> None:
        self._subscription.fail(error)


class Subscription:
    """A single consumer's view of a device source."""

    def __init__(
        self,
        source: DeviceSource,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        overflow: OverflowPolicy = OverflowPolicy.BLOCK,
        logger: logging.Logger | None = None,
    ) -> None:
        self._source = source
        self._buffer_size = buffer_size
        self._overflow = overflow
        self._logger = logger or _logger
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=buffer_size)
        self._callback = _SubscriptionCallback(self)
        self._source_task: asyncio.Task[None] | None = None
        self._cleanups: list[Callable[[], None]] = []
        self._started = False
        self._closed = False
        self._reading = False
        self._failure: SensorFailure | None = None

    @property
    def source(self) -> DeviceSource:
        return self._source

    @property
    def callback(self) -> EventCallback:
        """The callback the source pushes into."""
        return self._callback

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def failure(self) -> SensorFailure | None:
        return self._failure

    def add_cleanup(self, cleanup: Callable[[], None]) -> None:
        """Register a hook that runs once when the subscription closes."""
        if self._closed:
            cleanup()
            return
        self._cleanups.append(cleanup)

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    async def send(self, event: AngleChanged | BucketLoadChanged) -> None:
        """Enqueue *event* according to the overflow policy."""
        if self._closed:
            raise ChannelClosedError("Subscription is closed")
        if self._overflow == OverflowPolicy.FAIL:
            try:
                self._queue.put_nowait(event)
            except asyncio.QueueFull as exc:
                raise ChannelFullError(
                    f"Subscription buffer full (capacity={self._buffer_size})",
                    capacity=self._buffer_size,
                ) from exc
            return
        await self._queue.put(event)

    def fail(self, error: SensorFailure) -> None:
        """Terminate the sequence with *error*; buffered events are discarded."""
        if self._closed:
            self._logger.debug("Ignoring failure on closed subscription: %s", error)
            return
        self._logger.debug("Subscription failed: %s", error)
        self._failure = error
        self._close()

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the device source.  Pulling the first item does this implicitly."""
        if self._started or self._closed:
            return
        self._started = True
        self._logger.debug("Subscription starting source=%s", type(self._source).__name__)
        self._source_task = self._source.start(self._callback)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> AngleChanged | BucketLoadChanged:
        if self._closed:
            self._raise_terminal()
        if self._reading:
            raise ChannelError("Subscription already has an active consumer")
        self.start()
        self._reading = True
        try:
            item = await self._queue.get()
        finally:
            self._reading = False
        if item is _CLOSED:
            self._raise_terminal()
        return item

    async def aclose(self) -> None:
        """Cancel the subscription, stopping the source and waiting for it."""
        self._close()
        task = self._source_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            await asyncio.wait({task})

    async def __aenter__(self) -> Subscription:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _raise_terminal(self) -> NoReturn:
        if self._failure is not None:
            raise self._failure
        raise StopAsyncIteration

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

        self._source.stop()
        cleanups, self._cleanups = self._cleanups, []
        for cleanup in cleanups:
            try:
                cleanup()
            except Exception:
                self._logger.debug("Subscription cleanup failed", exc_info=True)
        self._logger.debug("Subscription closed failed=%s", self._failure is not None)


class EventChannel:
    """Factory of subscriptions over a device source.

    Usage::

        channel = EventChannel()
        async with channel.subscribe() as events:
            async for event in events:
                ...
    """

    def __init__(
        self,
        source_factory: Callable[[], DeviceSource] = RotarySensorSource,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        overflow: OverflowPolicy = OverflowPolicy.BLOCK,
        logger: logging.Logger | None = None,
    ) -> None:
        self._source_factory = source_factory
        self._buffer_size = buffer_size
        self._overflow = overflow
        self._logger = logger or _logger

    def subscribe(self) -> Subscription:
        """Return a new lazy subscription backed by its own device source."""
        return Subscription(
            self._source_factory(),
            buffer_size=self._buffer_size,
            overflow=self._overflow,
            logger=self._logger,
        )
