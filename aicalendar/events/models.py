"""Canonical event model shared by every source fetcher."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt


class EventPlatform(enum.StrEnum):
    """Platform an event record is attributed to."""

    LUMA = "luma"
    MEETUP = "meetup"
    EVENTBRITE = "eventbrite"
    MANUAL = "manual"


class EventFormat(enum.StrEnum):
    """Presentation category shown on the calendar."""

    MEETUP = "Meetup"
    WORKSHOP = "Workshop"
    HACKATHON = "Hackathon"
    SUMMIT = "Summit"
    ONLINE = "Online"
    SOCIAL = "Social"
    OTHER = "Other"


class EventStatus(enum.StrEnum):
    """Moderation state owned by storage, never produced by fetchers."""

    APPROVED = "approved"
    PENDING_REVIEW = "pending_review"
    HIDDEN = "hidden"


DEFAULT_FORMAT = EventFormat.MEETUP


class InvalidEventError(ValueError):
    """Raised when a mapped record violates the canonical event invariants."""

    @classmethod
    def empty_field(cls, field: str) -> InvalidEventError:
        """Return an error for a required field that is blank."""
        return cls(f"{field} must be non-empty")

    @classmethod
    def naive_datetime(cls, field: str) -> InvalidEventError:
        """Return an error for a timestamp without timezone information."""
        return cls(f"{field} must be timezone aware")


@dataclasses.dataclass(frozen=True, slots=True)
class CanonicalEvent:
    """Unified event record produced by every source fetcher.

    ``platform_id`` is derived from the source's native identifier so the same
    upstream event maps to the same storage key on every run.
    """

    platform_id: str
    platform: EventPlatform
    title: str
    url: str
    start_at: dt.datetime
    format: EventFormat = DEFAULT_FORMAT
    community_slug: str | None = None
    description: str | None = None
    image_url: str | None = None
    end_at: dt.datetime | None = None
    venue: str | None = None
    formatted_address: str | None = None
    city: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    is_featured: bool = False
    platform_data: dict[str, typ.Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        """Reject records missing the fields every consumer relies on."""
        if not self.platform_id:
            raise InvalidEventError.empty_field("platform_id")
        if not self.title.strip():
            raise InvalidEventError.empty_field("title")
        if not self.url:
            raise InvalidEventError.empty_field("url")
        if self.start_at.tzinfo is None:
            raise InvalidEventError.naive_datetime("start_at")
        if self.end_at is not None and self.end_at.tzinfo is None:
            raise InvalidEventError.naive_datetime("end_at")


def make_platform_id(prefix: str, native_id: str) -> str:
    """Build the stable ``<prefix>-<native id>`` storage key."""
    return f"{prefix}-{native_id}"


def normalise_format(
    raw: str | None,
    table: cabc.Mapping[str, EventFormat],
    *,
    default: EventFormat = DEFAULT_FORMAT,
) -> EventFormat:
    """Map a source category onto :class:`EventFormat`.

    Lookups are case-insensitive; unknown or missing categories fall back to
    ``default`` rather than ``None``.

    Examples
    --------
    >>> normalise_format("Workshop", {"workshop": EventFormat.WORKSHOP})
    <EventFormat.WORKSHOP: 'Workshop'>
    >>> normalise_format("mystery", {})
    <EventFormat.MEETUP: 'Meetup'>

    """
    if not raw:
        return default
    return table.get(raw.strip().lower(), default)
