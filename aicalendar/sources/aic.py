"""AI Collective platform fetcher for a single chapter."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

import msgspec

from aicalendar.common.time import parse_iso_datetime
from aicalendar.events.geo import (
    DEFAULT_REGION,
    RegionConfig,
    is_within_radius,
    parse_coordinate,
)
from aicalendar.events.models import (
    CanonicalEvent,
    EventFormat,
    EventPlatform,
    make_platform_id,
    normalise_format,
)

from .base import HTTPClientConfig, HTTPFetcherBase, SourceLogEvent, convert_or_none
from .errors import SourceResponseShapeError

if typ.TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

AIC_FORMATS: dict[str, EventFormat] = {
    "meetup": EventFormat.MEETUP,
    "forum": EventFormat.MEETUP,
    "workshop": EventFormat.WORKSHOP,
    "hackathon": EventFormat.HACKATHON,
    "summit": EventFormat.SUMMIT,
    "online": EventFormat.ONLINE,
    "social": EventFormat.SOCIAL,
}


@dataclasses.dataclass(frozen=True, slots=True)
class AICollectiveConfig:
    """Configuration for :class:`AICollectiveFetcher`.

    ``community_slug`` is attached to every event regardless of ``chapter``;
    the platform only publishes one chapter per community.
    """

    chapter: str = "portland"
    community_slug: str = "aic-portland"
    api_base: str = "https://platform.aicollective.com/api/public"
    limit: int = 50
    home_city: str = "Portland"
    default_country: str = "US"
    default_timezone: str = "America/Los_Angeles"
    region: RegionConfig = DEFAULT_REGION
    http: HTTPClientConfig = dataclasses.field(default_factory=HTTPClientConfig)


class _AICEvent(msgspec.Struct, rename="camel"):
    platform_id: str
    start_at: str
    title: str | None = None
    url: str | None = None
    link: str | None = None
    format: str | None = None
    image_url: str | None = None
    end_at: str | None = None
    timezone: str | None = None
    is_featured: bool | None = None
    geo_latitude: str | float | None = None
    geo_longitude: str | float | None = None


class AICollectiveFetcher(HTTPFetcherBase):
    """Fetch a chapter's events, geo-fenced by coordinates."""

    name = "aic"

    def __init__(
        self,
        config: AICollectiveConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the fetcher with its chapter and an optional HTTP client."""
        self._config = config or AICollectiveConfig()
        super().__init__(self._config.http, http_client=http_client)

    async def fetch(self) -> list[CanonicalEvent]:
        """Return mapped events for the configured chapter.

        When the chapter has no upcoming events the past listing is fetched
        instead. Request failures propagate to the caller.
        """
        raw_events = await self._fetch_events(upcoming=True)
        if raw_events:
            logger.info(
                "[%s] source=%s chapter=%s upcoming=true entries=%d",
                SourceLogEvent.FEED_FETCHED,
                self.name,
                self._config.chapter,
                len(raw_events),
            )
        else:
            raw_events = await self._fetch_events(upcoming=False)
            logger.info(
                "[%s] source=%s chapter=%s upcoming=false entries=%d",
                SourceLogEvent.FEED_FETCHED,
                self.name,
                self._config.chapter,
                len(raw_events),
            )

        events: list[CanonicalEvent] = []
        geo_filtered = 0
        for raw in raw_events:
            record = convert_or_none(raw, _AICEvent)
            if record is None:
                continue
            if not is_within_radius(
                record.geo_latitude, record.geo_longitude, self._config.region
            ):
                geo_filtered += 1
                continue
            event = self._to_canonical(raw, record)
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

    async def _fetch_events(self, *, upcoming: bool) -> list[dict[str, typ.Any]]:
        payload = await self._get_json(
            f"{self._config.api_base.rstrip('/')}/events",
            params={
                "chapter": self._config.chapter,
                "upcoming": "true" if upcoming else "false",
                "limit": str(self._config.limit),
            },
        )
        events = payload.get("events")
        if not isinstance(events, list):
            raise SourceResponseShapeError.missing(self.name, "events")
        return [item for item in events if isinstance(item, dict)]

    def _to_canonical(
        self, raw: dict[str, typ.Any], record: _AICEvent
    ) -> CanonicalEvent | None:
        try:
            return CanonicalEvent(
                platform_id=make_platform_id("aic", record.platform_id),
                platform=EventPlatform.LUMA,
                community_slug=self._config.community_slug,
                title=record.title or "",
                url=record.url or record.link or "",
                image_url=record.image_url,
                format=normalise_format(record.format, AIC_FORMATS),
                start_at=parse_iso_datetime(record.start_at),
                end_at=parse_iso_datetime(record.end_at) if record.end_at else None,
                city=self._config.home_city,
                country=self._config.default_country,
                latitude=parse_coordinate(record.geo_latitude),
                longitude=parse_coordinate(record.geo_longitude),
                timezone=record.timezone or self._config.default_timezone,
                is_featured=bool(record.is_featured),
                platform_data=raw,
            )
        except ValueError:
            logger.debug("Dropping malformed AIC event %s", record.platform_id)
            return None
