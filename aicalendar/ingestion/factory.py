"""Wire fetchers, storage and settings into an aggregator."""

from __future__ import annotations

import typing as typ

import httpx

from aicalendar.sources.aic import AICollectiveConfig, AICollectiveFetcher
from aicalendar.sources.base import HTTPClientConfig
from aicalendar.sources.loader import SourcesConfig, load_sources
from aicalendar.sources.luma import LumaConfig, LumaFetcher
from aicalendar.sources.meetup import MeetupConfig, MeetupFetcher
from aicalendar.storage.upsert import EventUpsertWriter

from .aggregator import IngestionAggregator, IngestionConfig

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from aicalendar.config import IngestionSettings
    from aicalendar.sources.base import EventSource


def load_sources_config(settings: IngestionSettings) -> SourcesConfig:
    """Load the configured sources file, or the built-in defaults."""
    if settings.sources_path is None:
        return SourcesConfig()
    return load_sources(settings.sources_path)


def create_http_client(settings: IngestionSettings) -> httpx.AsyncClient:
    """Return the shared outbound client used by every fetcher."""
    http = HTTPClientConfig(timeout_s=settings.http_timeout_s)
    return httpx.AsyncClient(
        timeout=http.timeout_s,
        headers={"User-Agent": http.user_agent},
        follow_redirects=True,
    )


def build_sources(
    sources: SourcesConfig,
    settings: IngestionSettings,
    *,
    http_client: httpx.AsyncClient,
) -> list[EventSource]:
    """Instantiate a fetcher for every source that has something to fetch.

    Fetch order is Luma, Meetup, then AI Collective; URL dedupe keeps the
    first occurrence, so earlier sources win ties.
    """
    http = HTTPClientConfig(timeout_s=settings.http_timeout_s)
    fetchers: list[EventSource] = []
    if sources.luma:
        fetchers.append(
            LumaFetcher(
                LumaConfig(
                    feeds=tuple(sources.luma),
                    max_pages=settings.luma_max_pages,
                    http=http,
                ),
                http_client=http_client,
            )
        )
    if sources.meetup:
        fetchers.append(
            MeetupFetcher(
                MeetupConfig(groups=tuple(sources.meetup), http=http),
                http_client=http_client,
            )
        )
    if sources.aic is not None:
        fetchers.append(
            AICollectiveFetcher(
                AICollectiveConfig(
                    chapter=sources.aic.chapter,
                    community_slug=sources.aic.community_slug,
                    http=http,
                ),
                http_client=http_client,
            )
        )
    return fetchers


def build_aggregator(
    session_factory: async_sessionmaker[AsyncSession],
    settings: IngestionSettings,
    *,
    http_client: httpx.AsyncClient,
    sources: SourcesConfig | None = None,
) -> IngestionAggregator:
    """Build an aggregator that writes through :class:`EventUpsertWriter`."""
    resolved = sources if sources is not None else load_sources_config(settings)
    return IngestionAggregator(
        build_sources(resolved, settings, http_client=http_client),
        EventUpsertWriter(session_factory),
        config=IngestionConfig(batch_size=settings.batch_size),
    )
