"""Unit tests for the idempotent event writer."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import typing as typ

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import StatementError

from aicalendar.events.models import EventStatus
from aicalendar.storage import (
    EventRecord,
    EventUpsertWriter,
    TimezoneAwareRequiredError,
    UpsertCounts,
)
from tests.helpers.event_builders import EventSpec, build_events

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


async def _stored(
    session_factory: async_sessionmaker[AsyncSession],
) -> dict[str, EventRecord]:
    async with session_factory() as session:
        records = (await session.scalars(select(EventRecord))).all()
        return {record.platform_id: record for record in records}


@pytest.mark.asyncio
async def test_insert_then_update_counts(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A repeated upsert reports every row as updated."""
    writer = EventUpsertWriter(session_factory)
    events = build_events("luma", 3)

    first = await writer.upsert(events)
    second = await writer.upsert(events)

    assert first == UpsertCounts(inserted=3, updated=0)
    assert second == UpsertCounts(inserted=0, updated=3)
    assert len(await _stored(session_factory)) == 3


@pytest.mark.asyncio
async def test_mixed_batch_counts(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """New and existing keys in one batch are counted separately."""
    writer = EventUpsertWriter(session_factory)
    events = build_events("luma", 4)
    await writer.upsert(events[:2])

    counts = await writer.upsert(events)

    assert counts == UpsertCounts(inserted=2, updated=2)


@pytest.mark.asyncio
async def test_conflict_refreshes_mutable_columns(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Source-owned columns follow the latest fetch."""
    writer = EventUpsertWriter(session_factory)
    original = EventSpec("1", title="Draft title").build()
    await writer.upsert([original])
    before = (await _stored(session_factory))["luma-1"]

    moved = dc.replace(
        original,
        title="Final title",
        start_at=original.start_at + dt.timedelta(days=1),
        platform_data={"id": "1", "rev": 2},
    )
    await writer.upsert([moved])

    after = (await _stored(session_factory))["luma-1"]
    assert after.title == "Final title"
    assert after.start_at == moved.start_at
    assert after.platform_data == {"id": "1", "rev": 2}
    assert after.created_at == before.created_at, "created_at must not change"
    assert after.updated_at >= before.updated_at


@pytest.mark.asyncio
async def test_conflict_preserves_moderation_status(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A hidden row stays hidden after the source re-sends it."""
    writer = EventUpsertWriter(session_factory)
    event = EventSpec("1").build()
    await writer.upsert([event])
    async with session_factory() as session, session.begin():
        await session.execute(
            update(EventRecord)
            .where(EventRecord.platform_id == "luma-1")
            .values(status=EventStatus.HIDDEN.value)
        )

    await writer.upsert([dc.replace(event, title="Renamed")])

    stored = (await _stored(session_factory))["luma-1"]
    assert stored.status == EventStatus.HIDDEN.value
    assert stored.title == "Renamed"


@pytest.mark.asyncio
async def test_new_rows_default_to_approved(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Inserted rows start approved with aware timestamps."""
    writer = EventUpsertWriter(session_factory)
    await writer.upsert([EventSpec("1").build()])

    stored = (await _stored(session_factory))["luma-1"]
    assert stored.status == EventStatus.APPROVED.value
    assert stored.start_at.tzinfo is not None
    assert stored.format == "Meetup"
    assert stored.platform == "luma"


@pytest.mark.asyncio
async def test_duplicate_ids_in_one_batch_keep_first(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A batch repeating a platform_id writes the first record once."""
    writer = EventUpsertWriter(session_factory)
    first = EventSpec("1", title="First").build()
    second = dc.replace(first, title="Second")

    counts = await writer.upsert([first, second])

    assert counts == UpsertCounts(inserted=1, updated=0)
    assert (await _stored(session_factory))["luma-1"].title == "First"


@pytest.mark.asyncio
async def test_empty_batch_is_a_noop(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """No records means no transaction and zero counts."""
    assert await EventUpsertWriter(session_factory).upsert([]) == UpsertCounts()


@pytest.mark.asyncio
async def test_naive_timestamps_are_rejected(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """The UTC column type refuses naive datetimes."""
    async with session_factory() as session:
        session.add(
            EventRecord(
                platform_id="manual-1",
                platform="manual",
                title="Naive",
                url="https://example.test/naive",
                start_at=dt.datetime(2099, 1, 1),  # noqa: DTZ001
            )
        )
        with pytest.raises(StatementError) as excinfo:
            await session.flush()

    assert isinstance(excinfo.value.orig, TimezoneAwareRequiredError)
