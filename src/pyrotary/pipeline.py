"""Wiring of the source, channel and sink into one pipeline."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable

from pyrotary.channel import EventChannel
from pyrotary.config import SensorConfig
from pyrotary.sink import SensorState, StateSink
from pyrotary.source import RotarySensorSource, SleepFn

_logger = logging.getLogger(__name__)


def build_channel(config: SensorConfig, *, sleep: SleepFn = asyncio.sleep) -> EventChannel:
    """Build an event channel whose subscriptions each get a fresh rotary source."""
    source_factory = functools.partial(RotarySensorSource, interval=config.interval, sleep=sleep)
    return EventChannel(
        source_factory,
        buffer_size=config.buffer_size,
        overflow=config.overflow,
    )


def build_pipeline(
    config: SensorConfig | None = None,
    *,
    sleep: SleepFn = asyncio.sleep,
    on_change: Callable[[SensorState], None] | None = None,
) -> StateSink:
    """Construct source -> channel -> sink.  The sink is returned unstarted.

    Use it as ``async with build_pipeline() as sink:`` to bind it to a
    session.
    """
    if config is None:
        config = SensorConfig.from_env()
    _logger.debug(
        "Building pipeline interval=%s buffer_size=%s overflow=%s",
        config.interval,
        config.buffer_size,
        config.overflow,
    )
    return StateSink(build_channel(config, sleep=sleep), on_change=on_change)
