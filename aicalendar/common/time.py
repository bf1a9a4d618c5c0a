"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for DB defaults."""
    return dt.datetime.now(dt.UTC)


def parse_iso_datetime(value: str) -> dt.datetime:
    """Parse an ISO 8601 timestamp that must carry an offset.

    Source APIs emit both ``Z`` and ``+00:00`` suffixes; naive values are
    rejected because start times drive the future-only filter.

    Raises
    ------
    ValueError
        If the value is not ISO 8601 or has no timezone information.

    """
    parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        msg = f"datetime missing timezone: {value}"
        raise ValueError(msg)
    return parsed
