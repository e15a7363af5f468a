"""Shared test doubles: a virtual clock and scripted device sources."""

from __future__ import annotations

import asyncio
import heapq
from collections.abc import Callable, Sequence

from pyrotary.events import AngleChanged, BucketLoadChanged
from pyrotary.exceptions import SensorFailure
from pyrotary.source import EventCallback


async def settle(rounds: int = 20) -> None:
    """Let every ready task run a few steps."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(predicate: Callable[[], bool], *, rounds: int = 50_000) -> None:
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class VirtualClock:
    """Drop-in ``sleep`` whose time only moves when the test advances it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleep_calls: list[float] = []
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq = 0

    async def sleep(self, delay: float) -> None:
        self.sleep_calls.append(delay)
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self.now + delay, self._seq, future))
        self._seq += 1
        await future

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._sleepers)
            self.now = deadline
            if not future.done():
                future.set_result(None)
            await settle()
        self.now = target
        await settle()


class RecordingCallback:
    def __init__(self, clock: VirtualClock | None = None) -> None:
        self._clock = clock
        self.events: list[AngleChanged | BucketLoadChanged] = []
        self.times: list[float] = []
        self.errors: list[SensorFailure] = []

    async def on_event(self, event: AngleChanged | BucketLoadChanged) -> None:
        self.events.append(event)
        if self._clock is not None:
            self.times.append(self._clock.now)

    async def on_error(self, error: SensorFailure) -> None:
        self.errors.append(error)


class ScriptedSource:
    """Pushes a fixed list of events, optionally fails, then idles until stopped."""

    def __init__(
        self,
        events: Sequence[AngleChanged | BucketLoadChanged] = (),
        *,
        fail_with: Exception | None = None,
    ) -> None:
        self._events = list(events)
        self._fail_with = fail_with
        self._task: asyncio.Task[None] | None = None
        self.callback: EventCallback | None = None
        self.started = 0
        self.stopped = False
        self.delivered = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: EventCallback) -> asyncio.Task[None]:
        self.callback = callback
        self.started += 1
        self._task = asyncio.get_running_loop().create_task(self._run(callback))
        return self._task

    def stop(self) -> None:
        self.stopped = True
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self, callback: EventCallback) -> None:
        for event in self._events:
            await callback.on_event(event)
            self.delivered += 1
        if self._fail_with is not None:
            await callback.on_error(SensorFailure(f"scripted failure: {self._fail_with}", cause=self._fail_with))
            return
        await asyncio.Event().wait()


class SourceFactory:
    """Counts how many sources a channel asked for."""

    def __init__(self, make: Callable[[], ScriptedSource]) -> None:
        self._make = make
        self.created: list[ScriptedSource] = []

    def __call__(self) -> ScriptedSource:
        source = self._make()
        self.created.append(source)
        return source
