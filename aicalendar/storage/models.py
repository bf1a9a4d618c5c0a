"""Persistence models for stored events and communities."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine

from aicalendar.common.time import utcnow
from aicalendar.events.models import DEFAULT_FORMAT, EventStatus

from .errors import TimezoneAwareRequiredError


class Base(DeclarativeBase):
    """Base declarative class for calendar models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError.for_column()
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class EventRecord(Base):
    """Calendar event keyed by its stable ``platform_id``.

    ``status``, ``created_at`` and ``updated_at`` are owned by storage; the
    remaining columns mirror :class:`~aicalendar.events.models.CanonicalEvent`.
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_start_at", "start_at"),
        Index("ix_events_platform", "platform"),
        Index("ix_events_community_slug", "community_slug"),
        Index("ix_events_status", "status"),
    )

    platform_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    platform: Mapped[str] = mapped_column(String(32))
    community_slug: Mapped[str | None] = mapped_column(String(128), default=None)
    title: Mapped[str] = mapped_column(Text())
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    url: Mapped[str] = mapped_column(Text())
    image_url: Mapped[str | None] = mapped_column(Text(), default=None)
    format: Mapped[str] = mapped_column(String(32), default=DEFAULT_FORMAT.value)
    start_at: Mapped[dt.datetime] = mapped_column(UTCDateTime())
    end_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)
    venue: Mapped[str | None] = mapped_column(Text(), default=None)
    formatted_address: Mapped[str | None] = mapped_column(Text(), default=None)
    city: Mapped[str | None] = mapped_column(String(128), default=None)
    country: Mapped[str | None] = mapped_column(String(64), default=None)
    latitude: Mapped[float | None] = mapped_column(Float(), default=None)
    longitude: Mapped[float | None] = mapped_column(Float(), default=None)
    timezone: Mapped[str | None] = mapped_column(String(64), default=None)
    is_featured: Mapped[bool] = mapped_column(Boolean(), default=False)
    status: Mapped[str] = mapped_column(
        String(32), default=EventStatus.APPROVED.value, nullable=False
    )
    platform_data: Mapped[dict[str, typ.Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )


class CommunityRecord(Base):
    """Community registry row keyed by slug."""

    __tablename__ = "communities"

    slug: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(Text())
    description: Mapped[str | None] = mapped_column(Text(), default=None)
    website_url: Mapped[str | None] = mapped_column(Text(), default=None)
    logo_url: Mapped[str | None] = mapped_column(Text(), default=None)
    color: Mapped[str | None] = mapped_column(String(16), default=None)
    meetup_slug: Mapped[str | None] = mapped_column(String(128), default=None)
    luma_calendar_slug: Mapped[str | None] = mapped_column(String(128), default=None)
    eventbrite_org_id: Mapped[str | None] = mapped_column(String(128), default=None)
    leader_name: Mapped[str | None] = mapped_column(Text(), default=None)
    leader_email: Mapped[str | None] = mapped_column(Text(), default=None)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )


async def init_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
