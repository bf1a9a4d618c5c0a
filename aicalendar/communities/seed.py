"""Seed the community registry."""

from __future__ import annotations

import logging
import typing as typ

import msgspec
from sqlalchemy import select

from aicalendar.common.time import utcnow
from aicalendar.storage.models import CommunityRecord
from aicalendar.storage.upsert import dialect_insert

from .models import DEFAULT_COMMUNITIES, Community

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


async def seed_communities(
    session_factory: async_sessionmaker[AsyncSession],
    communities: cabc.Sequence[Community] = DEFAULT_COMMUNITIES,
) -> int:
    """Insert communities whose slug is not yet registered.

    Existing rows are left untouched so edits made after seeding survive.

    Returns
    -------
    int
        Number of communities newly inserted.

    """
    if not communities:
        return 0
    now = utcnow()
    rows = [
        {**msgspec.structs.asdict(community), "created_at": now, "updated_at": now}
        for community in communities
    ]
    slugs = [community.slug for community in communities]
    async with session_factory() as session, session.begin():
        existing = set(
            (
                await session.scalars(
                    select(CommunityRecord.slug).where(CommunityRecord.slug.in_(slugs))
                )
            ).all()
        )
        stmt = dialect_insert(session, CommunityRecord)
        await session.execute(
            stmt.on_conflict_do_nothing(index_elements=[CommunityRecord.slug]), rows
        )
    inserted = len(set(slugs) - existing)
    logger.info("Seeded %d of %d communities", inserted, len(communities))
    return inserted
