"""Idempotent batch writer for canonical events."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from aicalendar.common.time import utcnow
from aicalendar.events.models import EventStatus

from .models import EventRecord

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from aicalendar.events.models import CanonicalEvent

# Columns refreshed on conflict; ``status`` and ``created_at`` are never overwritten.
MUTABLE_COLUMNS: tuple[str, ...] = (
    "title",
    "description",
    "url",
    "image_url",
    "format",
    "start_at",
    "end_at",
    "venue",
    "formatted_address",
    "city",
    "country",
    "latitude",
    "longitude",
    "timezone",
    "community_slug",
    "is_featured",
    "platform_data",
)


class UnsupportedDialectError(RuntimeError):
    """Raised when the bound database has no ON CONFLICT insert support."""

    def __init__(self, dialect: str) -> None:
        """Record the unsupported dialect name."""
        super().__init__(f"upsert is not supported for dialect {dialect!r}")


@dc.dataclass(frozen=True, slots=True)
class UpsertCounts:
    """Rows created and rows refreshed by one upsert call."""

    inserted: int = 0
    updated: int = 0


class EventSink(typ.Protocol):
    """Persistence boundary used by the aggregator."""

    async def upsert(self, records: cabc.Sequence[CanonicalEvent]) -> UpsertCounts:
        """Insert or refresh ``records`` keyed by ``platform_id``."""
        ...


def dialect_insert(
    session: AsyncSession, model: type[typ.Any]
) -> postgresql.Insert | sqlite.Insert:
    """Return the bound dialect's ``INSERT`` construct for ``model``."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise UnsupportedDialectError(name)


def _row(record: CanonicalEvent) -> dict[str, typ.Any]:
    now = utcnow()
    return {
        "platform_id": record.platform_id,
        "platform": record.platform.value,
        "community_slug": record.community_slug,
        "title": record.title,
        "description": record.description,
        "url": record.url,
        "image_url": record.image_url,
        "format": record.format.value,
        "start_at": record.start_at,
        "end_at": record.end_at,
        "venue": record.venue,
        "formatted_address": record.formatted_address,
        "city": record.city,
        "country": record.country,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "timezone": record.timezone,
        "is_featured": record.is_featured,
        "platform_data": record.platform_data,
        "status": EventStatus.APPROVED.value,
        "created_at": now,
        "updated_at": now,
    }


class EventUpsertWriter:
    """Write canonical events with ``INSERT ... ON CONFLICT DO UPDATE``.

    Each call runs in a single transaction, so a batch lands all-or-nothing.
    Existing keys are read inside that transaction to split the result into
    inserted and updated counts. When a batch repeats a ``platform_id`` only
    the first record is written.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Store the session factory used for upserts."""
        self._session_factory = session_factory

    async def upsert(self, records: cabc.Sequence[CanonicalEvent]) -> UpsertCounts:
        """Insert new events and refresh the mutable columns of known ones."""
        rows: dict[str, dict[str, typ.Any]] = {}
        for record in records:
            rows.setdefault(record.platform_id, _row(record))
        if not rows:
            return UpsertCounts()

        async with self._session_factory() as session, session.begin():
            existing = set(
                (
                    await session.scalars(
                        select(EventRecord.platform_id).where(
                            EventRecord.platform_id.in_(rows)
                        )
                    )
                ).all()
            )
            stmt = dialect_insert(session, EventRecord)
            refreshed = {name: stmt.excluded[name] for name in MUTABLE_COLUMNS}
            refreshed["updated_at"] = stmt.excluded.updated_at
            await session.execute(
                stmt.on_conflict_do_update(
                    index_elements=[EventRecord.platform_id],
                    set_=refreshed,
                ),
                list(rows.values()),
            )

        return UpsertCounts(
            inserted=len(rows) - len(existing),
            updated=len(existing),
        )
