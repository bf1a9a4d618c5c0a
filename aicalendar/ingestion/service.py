"""Ingestion runner that prepares storage before the first run."""

from __future__ import annotations

import asyncio
import logging
import typing as typ

from aicalendar.communities.seed import seed_communities
from aicalendar.storage.models import init_storage

from .factory import build_aggregator, load_sources_config

if typ.TYPE_CHECKING:
    import httpx
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from aicalendar.config import IngestionSettings
    from aicalendar.sources.loader import SourcesConfig

    from .aggregator import IngestionAggregator, IngestionStats

logger = logging.getLogger(__name__)


class IngestionService:
    """Own one aggregator plus the schema and community bootstrap it needs.

    The first :meth:`run` creates missing tables and seeds communities; later
    runs go straight to the aggregator.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        settings: IngestionSettings,
        *,
        http_client: httpx.AsyncClient,
        sources: SourcesConfig | None = None,
    ) -> None:
        """Load the sources file and build the aggregator."""
        self._engine = engine
        self._session_factory = session_factory
        self._sources = sources if sources is not None else load_sources_config(
            settings
        )
        self._aggregator = build_aggregator(
            session_factory, settings, http_client=http_client, sources=self._sources
        )
        self._prepared = False
        self._prepare_lock = asyncio.Lock()

    @property
    def aggregator(self) -> IngestionAggregator:
        """Return the wrapped aggregator."""
        return self._aggregator

    async def prepare(self) -> None:
        """Create tables and seed communities once per service instance."""
        if self._prepared:
            return
        async with self._prepare_lock:
            if self._prepared:
                return
            await init_storage(self._engine)
            seeded = await seed_communities(
                self._session_factory, self._sources.communities
            )
            logger.info("[ingestion.prepared] communities_seeded=%d", seeded)
            self._prepared = True

    async def run(self) -> IngestionStats:
        """Prepare storage if needed, then run the aggregator once."""
        await self.prepare()
        return await self._aggregator.run()
