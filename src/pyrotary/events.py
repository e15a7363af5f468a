"""Sensor events pushed from a device source to its consumers.

Events form a tagged union discriminated by ``kind``.  Failures are
never events: they travel out-of-band as
:class:`~pyrotary.exceptions.SensorFailure`.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class EventKind(StrEnum):
    ANGLE_CHANGED = "angle_changed"
    BUCKET_LOAD_CHANGED = "bucket_load_changed"


class SensorEvent(BaseModel):
    """Common fields of every sensor event."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class AngleChanged(SensorEvent):
    """A new rotary angle reading."""

    kind: Literal["angle_changed"] = EventKind.ANGLE_CHANGED.value
    angle: int = Field(..., ge=0)


class BucketLoadChanged(SensorEvent):
    """A new bucket load reading.

    Reserved for a second measurement stream: the built-in rotary source
    never emits it, but channels and sinks carry it end to end.
    """

    kind: Literal["bucket_load_changed"] = EventKind.BUCKET_LOAD_CHANGED.value
    load: int


Event = Annotated[AngleChanged | BucketLoadChanged, Field(discriminator="kind")]

_EVENT_ADAPTER: TypeAdapter[AngleChanged | BucketLoadChanged] = TypeAdapter(Event)


def parse_event(data: Mapping[str, Any]) -> AngleChanged | BucketLoadChanged:
    """Validate a raw mapping into the matching event variant."""
    return _EVENT_ADAPTER.validate_python(dict(data))
