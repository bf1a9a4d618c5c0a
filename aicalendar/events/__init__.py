"""Canonical event model and the regional geo-filter."""

from __future__ import annotations

from .geo import (
    DEFAULT_REGION,
    GeoCandidate,
    RegionConfig,
    is_in_region,
    is_within_radius,
    parse_coordinate,
)
from .models import (
    DEFAULT_FORMAT,
    CanonicalEvent,
    EventFormat,
    EventPlatform,
    EventStatus,
    InvalidEventError,
    make_platform_id,
    normalise_format,
)

__all__ = [
    "DEFAULT_FORMAT",
    "DEFAULT_REGION",
    "CanonicalEvent",
    "EventFormat",
    "EventPlatform",
    "EventStatus",
    "GeoCandidate",
    "InvalidEventError",
    "RegionConfig",
    "is_in_region",
    "is_within_radius",
    "make_platform_id",
    "normalise_format",
    "parse_coordinate",
]
