"""Luma discover and calendar feed fetcher.

Luma exposes public, unauthenticated endpoints for discover pages (by place
or category) and for individual calendars. Discover feeds are global, so every
entry passes through the region filter before mapping.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

import msgspec

from aicalendar.common.time import parse_iso_datetime
from aicalendar.common.urls import absolute_url
from aicalendar.events.geo import (
    DEFAULT_REGION,
    GeoCandidate,
    RegionConfig,
    is_in_region,
)
from aicalendar.events.models import (
    CanonicalEvent,
    EventFormat,
    EventPlatform,
    make_platform_id,
    normalise_format,
)

from .base import HTTPClientConfig, HTTPFetcherBase, SourceLogEvent, convert_or_none
from .errors import SourceAPIError, SourceConfigError, SourceResponseShapeError

if typ.TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

LumaFeedKind = typ.Literal["category", "place", "calendar"]

LUMA_FORMATS: dict[str, EventFormat] = {
    "independent": EventFormat.MEETUP,
    "meetup": EventFormat.MEETUP,
    "workshop": EventFormat.WORKSHOP,
    "course": EventFormat.WORKSHOP,
    "hackathon": EventFormat.HACKATHON,
    "conference": EventFormat.SUMMIT,
    "online": EventFormat.ONLINE,
}


class LumaFeed(msgspec.Struct, kw_only=True, frozen=True):
    """One Luma feed to pull; calendar feeds attribute events to a community."""

    kind: LumaFeedKind
    slug: str
    community_slug: str | None = None

    @property
    def label(self) -> str:
        """Return ``kind/slug`` for log messages."""
        return f"{self.kind}/{self.slug}"


DEFAULT_LUMA_FEEDS: tuple[LumaFeed, ...] = (
    LumaFeed(kind="place", slug="portland"),
    LumaFeed(kind="category", slug="ai"),
)


@dataclasses.dataclass(frozen=True, slots=True)
class LumaConfig:
    """Configuration for :class:`LumaFetcher`."""

    feeds: tuple[LumaFeed, ...] = DEFAULT_LUMA_FEEDS
    api_base: str = "https://api.lu.ma"
    site_base: str = "https://lu.ma"
    page_size: int = 50
    max_pages: int = 5
    region: RegionConfig = DEFAULT_REGION
    http: HTTPClientConfig = dataclasses.field(default_factory=HTTPClientConfig)

    def __post_init__(self) -> None:
        """Reject page caps that would never fetch anything."""
        if self.max_pages < 1:
            raise SourceConfigError.invalid_max_pages(self.max_pages)


class _GeoAddressInfo(msgspec.Struct):
    city: str | None = None
    city_state: str | None = None
    address: str | None = None
    full_address: str | None = None


class _GeoAddressJson(msgspec.Struct):
    city: str | None = None
    description: str | None = None


class _Coordinate(msgspec.Struct):
    latitude: float | None = None
    longitude: float | None = None


class _LumaEvent(msgspec.Struct):
    api_id: str
    start_at: str
    name: str | None = None
    description: str | None = None
    url: str | None = None
    end_at: str | None = None
    timezone: str | None = None
    cover_url: str | None = None
    event_type: str | None = None
    location_type: str | None = None
    geo_address_info: _GeoAddressInfo | None = None
    geo_address_json: _GeoAddressJson | None = None
    coordinate: _Coordinate | None = None


class _LumaEntry(msgspec.Struct):
    event: _LumaEvent
    api_id: str | None = None


class _LumaPage(msgspec.Struct):
    entries: list[typ.Any] = msgspec.field(default_factory=list)
    has_more: bool | None = None
    next_cursor: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class _TaggedEntry:
    raw: dict[str, typ.Any]
    entry: _LumaEntry
    community_slug: str | None


def _candidate(event: _LumaEvent) -> GeoCandidate:
    info = event.geo_address_info or _GeoAddressInfo()
    json_info = event.geo_address_json or _GeoAddressJson()
    coordinate = event.coordinate or _Coordinate()
    return GeoCandidate(
        city=info.city or json_info.city or info.city_state,
        address=_address(event),
        latitude=coordinate.latitude,
        longitude=coordinate.longitude,
    )


def _address(event: _LumaEvent) -> str | None:
    info = event.geo_address_info or _GeoAddressInfo()
    json_info = event.geo_address_json or _GeoAddressJson()
    return info.full_address or info.address or json_info.description


class LumaFetcher(HTTPFetcherBase):
    """Fetch in-region events from the configured Luma feeds."""

    name = "luma"

    def __init__(
        self,
        config: LumaConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the fetcher with its feeds and an optional HTTP client."""
        self._config = config or LumaConfig()
        if not self._config.feeds:
            raise SourceConfigError.empty_sources(self.name)
        super().__init__(self._config.http, http_client=http_client)

    async def fetch(self) -> list[CanonicalEvent]:
        """Return mapped, in-region events from every feed."""
        tagged = await self._collect_entries()
        events: list[CanonicalEvent] = []
        geo_filtered = 0
        for item in tagged:
            if not item.entry.event.name:
                continue
            if not is_in_region(_candidate(item.entry.event), self._config.region):
                geo_filtered += 1
                continue
            event = self._to_canonical(item)
            if event is not None:
                events.append(event)
        if geo_filtered:
            logger.info(
                "[%s] source=%s geo_filtered=%d",
                SourceLogEvent.GEO_FILTERED,
                self.name,
                geo_filtered,
            )
        return events

    async def _collect_entries(self) -> list[_TaggedEntry]:
        """Gather entries from every feed, first occurrence of an event wins.

        Raises
        ------
        SourceAPIError
            If every configured feed raised.

        """
        seen: set[str] = set()
        collected: list[_TaggedEntry] = []
        failures: list[Exception] = []
        for feed in self._config.feeds:
            try:
                raw_entries = await self._fetch_feed(feed)
            except Exception as exc:  # noqa: BLE001
                failures.append(exc)
                logger.warning(
                    "[%s] source=%s feed=%s error=%s",
                    SourceLogEvent.FEED_FAILED,
                    self.name,
                    feed.label,
                    exc,
                    exc_info=exc,
                )
                continue
            if raw_entries is None:
                continue
            logger.info(
                "[%s] source=%s feed=%s entries=%d",
                SourceLogEvent.FEED_FETCHED,
                self.name,
                feed.label,
                len(raw_entries),
            )
            for raw in raw_entries:
                entry = convert_or_none(raw, _LumaEntry)
                if entry is None or not entry.event.api_id:
                    continue
                if entry.event.api_id in seen:
                    continue
                seen.add(entry.event.api_id)
                community = feed.community_slug if feed.kind == "calendar" else None
                collected.append(_TaggedEntry(raw, entry, community))
        if len(failures) == len(self._config.feeds):
            raise SourceAPIError.all_failed(
                self.name, len(failures), failures[-1]
            ) from failures[-1]
        return collected

    async def _fetch_feed(self, feed: LumaFeed) -> list[dict[str, typ.Any]] | None:
        """Return raw entries for ``feed``; ``None`` when it cannot be resolved."""
        base = self._config.api_base.rstrip("/")
        if feed.kind == "calendar":
            calendar_id = await self._resolve_calendar(feed.slug)
            if calendar_id is None:
                logger.warning(
                    "[%s] source=%s feed=%s reason=unresolved_calendar_slug",
                    SourceLogEvent.FEED_SKIPPED,
                    self.name,
                    feed.label,
                )
                return None
            return await self._paginate(
                f"{base}/calendar/get-items", {"calendar_api_id": calendar_id}
            )
        return await self._paginate(
            f"{base}/discover/get-paginated-events",
            {f"discover_{feed.kind}_slug": feed.slug},
        )

    async def _resolve_calendar(self, slug: str) -> str | None:
        """Resolve a calendar slug to its ``api_id`` via the URL lookup endpoint."""
        response = await self._client.get(
            f"{self._config.api_base.rstrip('/')}/url", params={"url": slug}
        )
        if response.is_error:
            return None
        payload = self._decode_json(response)
        data = payload.get("data")
        calendar = data.get("calendar") if isinstance(data, dict) else None
        api_id = calendar.get("api_id") if isinstance(calendar, dict) else None
        return api_id if isinstance(api_id, str) and api_id else None

    async def _paginate(
        self, url: str, params: dict[str, str]
    ) -> list[dict[str, typ.Any]]:
        """Follow ``next_cursor`` one page at a time up to ``max_pages``."""
        entries: list[dict[str, typ.Any]] = []
        cursor: str | None = None
        for _ in range(self._config.max_pages):
            query = {**params, "pagination_limit": str(self._config.page_size)}
            if cursor:
                query["pagination_cursor"] = cursor
            payload = await self._get_json(url, params=query)
            page = convert_or_none(payload, _LumaPage)
            if page is None:
                raise SourceResponseShapeError.missing(self.name, "entries")
            entries.extend(item for item in page.entries if isinstance(item, dict))
            cursor = page.next_cursor if page.has_more else None
            if not cursor:
                break
        return entries

    def _event_url(self, event: _LumaEvent) -> str:
        if not event.url:
            return f"{self._config.site_base.rstrip('/')}/event/{event.api_id}"
        return absolute_url(event.url, base=self._config.site_base)

    def _to_canonical(self, item: _TaggedEntry) -> CanonicalEvent | None:
        event = item.entry.event
        if not event.name:
            return None
        fmt = normalise_format(event.event_type, LUMA_FORMATS)
        if event.location_type == "online":
            fmt = EventFormat.ONLINE
        info = event.geo_address_info or _GeoAddressInfo()
        json_info = event.geo_address_json or _GeoAddressJson()
        coordinate = event.coordinate or _Coordinate()
        try:
            return CanonicalEvent(
                platform_id=make_platform_id("luma", event.api_id),
                platform=EventPlatform.LUMA,
                community_slug=item.community_slug,
                title=event.name,
                description=event.description,
                url=self._event_url(event),
                image_url=event.cover_url,
                format=fmt,
                start_at=parse_iso_datetime(event.start_at),
                end_at=parse_iso_datetime(event.end_at) if event.end_at else None,
                formatted_address=_address(event),
                city=info.city or json_info.city,
                latitude=coordinate.latitude,
                longitude=coordinate.longitude,
                timezone=event.timezone,
                platform_data=item.raw,
            )
        except ValueError:
            logger.debug("Dropping malformed Luma entry %s", event.api_id)
            return None
