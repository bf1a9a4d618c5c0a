"""Unit tests for the aggregator wiring helpers."""

from __future__ import annotations

import typing as typ

import httpx
import pytest
import pytest_asyncio

from aicalendar.config import IngestionSettings
from aicalendar.ingestion.factory import (
    build_aggregator,
    build_sources,
    create_http_client,
    load_sources_config,
)
from aicalendar.sources.aic import AICollectiveFetcher
from aicalendar.sources.loader import SourcesConfig
from aicalendar.sources.luma import LumaFetcher
from aicalendar.sources.meetup import MeetupFetcher

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@pytest_asyncio.fixture
async def http_client() -> typ.AsyncIterator[httpx.AsyncClient]:
    """Provide a client whose transport refuses every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        yield client


class TestBuildSources:
    """Which fetchers are instantiated for a sources config."""

    @pytest.mark.asyncio
    async def test_defaults_fetch_everything_in_order(
        self, http_client: httpx.AsyncClient
    ) -> None:
        """Built-in defaults enable Luma, Meetup and AI Collective."""
        fetchers = build_sources(
            SourcesConfig(), IngestionSettings(), http_client=http_client
        )

        assert [type(f) for f in fetchers] == [
            LumaFetcher,
            MeetupFetcher,
            AICollectiveFetcher,
        ]
        assert [f.name for f in fetchers] == ["luma", "meetup", "aic"]

    @pytest.mark.asyncio
    async def test_empty_lists_disable_sources(
        self, http_client: httpx.AsyncClient
    ) -> None:
        """Empty lists and a null chapter leave nothing to fetch."""
        config = SourcesConfig(luma=[], meetup=[], aic=None)

        fetchers = build_sources(config, IngestionSettings(), http_client=http_client)

        assert fetchers == []

    @pytest.mark.asyncio
    async def test_only_meetup(self, http_client: httpx.AsyncClient) -> None:
        """Disabling one source keeps the others."""
        config = SourcesConfig(luma=[], aic=None)

        fetchers = build_sources(config, IngestionSettings(), http_client=http_client)

        assert [f.name for f in fetchers] == ["meetup"]


def test_load_sources_config_defaults_without_path() -> None:
    """No sources file means built-in defaults."""
    assert load_sources_config(IngestionSettings()) == SourcesConfig()


def test_load_sources_config_reads_file(tmp_path: Path) -> None:
    """A configured path is parsed and validated."""
    path = tmp_path / "sources.yaml"
    path.write_text("luma: []\nmeetup: []\naic: null\n", encoding="utf-8")

    config = load_sources_config(IngestionSettings(sources_path=path))

    assert config.luma == []
    assert config.aic is None


@pytest.mark.asyncio
async def test_create_http_client_applies_settings() -> None:
    """The shared client carries the timeout and user agent."""
    async with create_http_client(IngestionSettings(http_timeout_s=7.5)) as client:
        assert client.timeout.read == 7.5
        assert "AI-Calendar" in client.headers["User-Agent"]
        assert client.follow_redirects is True


@pytest.mark.asyncio
async def test_build_aggregator_uses_supplied_sources(
    session_factory: async_sessionmaker[AsyncSession],
    http_client: httpx.AsyncClient,
) -> None:
    """An explicit config bypasses the settings path."""
    aggregator = build_aggregator(
        session_factory,
        IngestionSettings(),
        http_client=http_client,
        sources=SourcesConfig(luma=[], meetup=[]),
    )

    assert aggregator.source_names == ("aic",)
