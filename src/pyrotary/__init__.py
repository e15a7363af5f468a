"""pyrotary - Async simulated rotary sensor pipeline."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrotary")
except PackageNotFoundError:
    __version__ = "0+local"
from pyrotary.channel import EventChannel, Subscription
from pyrotary.config import OverflowPolicy, SensorConfig
from pyrotary.events import AngleChanged, BucketLoadChanged, Event, EventKind, SensorEvent, parse_event
from pyrotary.exceptions import (
    ChannelClosedError,
    ChannelError,
    ChannelFullError,
    RotaryConfigError,
    RotaryError,
    SensorFailure,
)
from pyrotary.pipeline import build_channel, build_pipeline
from pyrotary.sink import SensorState, SinkStatus, StateSink
from pyrotary.source import DeviceSource, EventCallback, RotarySensorSource

__all__ = [
    "__version__",
    "AngleChanged",
    "BucketLoadChanged",
    "ChannelClosedError",
    "ChannelError",
    "ChannelFullError",
    "DeviceSource",
    "Event",
    "EventCallback",
    "EventChannel",
    "EventKind",
    "OverflowPolicy",
    "RotaryConfigError",
    "RotaryError",
    "RotarySensorSource",
    "SensorConfig",
    "SensorEvent",
    "SensorFailure",
    "SensorState",
    "SinkStatus",
    "StateSink",
    "Subscription",
    "build_channel",
    "build_pipeline",
    "parse_event",
]
