"""Persistence for stored events and the community registry."""

from __future__ import annotations

from .errors import TimezoneAwareRequiredError
from .models import Base, CommunityRecord, EventRecord, UTCDateTime, init_storage
from .upsert import (
    EventSink,
    EventUpsertWriter,
    UnsupportedDialectError,
    UpsertCounts,
)

__all__ = [
    "Base",
    "CommunityRecord",
    "EventRecord",
    "EventSink",
    "EventUpsertWriter",
    "TimezoneAwareRequiredError",
    "UTCDateTime",
    "UnsupportedDialectError",
    "UpsertCounts",
    "init_storage",
]
