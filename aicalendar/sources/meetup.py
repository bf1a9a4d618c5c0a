"""Meetup group fetcher with a GraphQL primary path and an HTML fallback."""

from __future__ import annotations

import dataclasses
import logging
import typing as typ

import msgspec

from aicalendar.common.time import parse_iso_datetime
from aicalendar.events.models import (
    CanonicalEvent,
    EventFormat,
    EventPlatform,
    make_platform_id,
    normalise_format,
)

from .base import HTTPClientConfig, HTTPFetcherBase, SourceLogEvent, convert_or_none
from .errors import SourceAPIError, SourceConfigError, SourceResponseShapeError
from .meetup_page import (
    MeetupEventNode,
    MeetupGroupRef,
    MeetupVenue,
    ParsedEventsFound,
    parse_group_page,
)

if typ.TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

MEETUP_FORMATS: dict[str, EventFormat] = {"online": EventFormat.ONLINE}

_UPCOMING_EVENTS_QUERY = """
query ($urlname: String!, $first: Int!) {
  groupByUrlname(urlname: $urlname) {
    timezone
    upcomingEvents(input: {first: $first}) {
      edges {
        node {
          id
          title
          description
          eventUrl
          dateTime
          endTime
          going
          imageUrl
          eventType
          venue { name address city state country lat lng }
          group { urlname timezone }
        }
      }
    }
  }
}
"""


class MeetupGroup(msgspec.Struct, kw_only=True, frozen=True):
    """A Meetup group and the community its events belong to."""

    urlname: str
    community_slug: str


DEFAULT_MEETUP_GROUPS: tuple[MeetupGroup, ...] = (
    MeetupGroup(urlname="ai-portland", community_slug="ai-portland"),
    MeetupGroup(
        urlname="portland-ai-engineers", community_slug="portland-ai-engineers"
    ),
    MeetupGroup(urlname="ai-tinkerers-portland-or", community_slug="ai-tinkerers-pdx"),
)


@dataclasses.dataclass(frozen=True, slots=True)
class MeetupConfig:
    """Configuration for :class:`MeetupFetcher`."""

    groups: tuple[MeetupGroup, ...] = DEFAULT_MEETUP_GROUPS
    gql_endpoint: str = "https://www.meetup.com/gql2"
    site_base: str = "https://www.meetup.com"
    page_size: int = 20
    home_city: str = "Portland"
    default_country: str = "US"
    default_timezone: str = "America/Los_Angeles"
    http: HTTPClientConfig = dataclasses.field(default_factory=HTTPClientConfig)


def _format_address(venue: MeetupVenue | None) -> str | None:
    if venue is None:
        return None
    parts = [
        part
        for part in (venue.address, venue.city, venue.state, venue.country)
        if part
    ]
    return ", ".join(parts) if parts else None


def _nodes_from_graphql(
    data: dict[str, typ.Any], urlname: str
) -> list[MeetupEventNode]:
    group = data.get("groupByUrlname")
    if not isinstance(group, dict):
        raise SourceAPIError.unknown_group("meetup", urlname)
    connection = group.get("upcomingEvents")
    if not isinstance(connection, dict):
        raise SourceAPIError.unknown_group("meetup", urlname)
    group_timezone = group.get("timezone")
    edges = connection.get("edges") or []
    nodes: list[MeetupEventNode] = []
    for edge in edges:
        raw = edge.get("node") if isinstance(edge, dict) else None
        node = convert_or_none(raw, MeetupEventNode)
        if node is None:
            continue
        ref = node.group or MeetupGroupRef()
        if ref.timezone is None and isinstance(group_timezone, str):
            node = msgspec.structs.replace(
                node,
                group=msgspec.structs.replace(ref, timezone=group_timezone),
            )
        nodes.append(node)
    return nodes


class MeetupFetcher(HTTPFetcherBase):
    """Fetch upcoming events for the configured Meetup groups."""

    name = "meetup"

    def __init__(
        self,
        config: MeetupConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the fetcher with its groups and an optional HTTP client."""
        self._config = config or MeetupConfig()
        if not self._config.groups:
            raise SourceConfigError.empty_sources(self.name)
        super().__init__(self._config.http, http_client=http_client)

    async def fetch(self) -> list[CanonicalEvent]:
        """Return mapped events for every group; failed groups are skipped.

        Raises
        ------
        SourceAPIError
            If every configured group failed on both paths.

        """
        events: list[CanonicalEvent] = []
        failures: list[Exception] = []
        for group in self._config.groups:
            try:
                nodes = await self._fetch_group(group)
            except Exception as exc:  # noqa: BLE001
                failures.append(exc)
                logger.warning(
                    "[%s] source=%s group=%s error=%s",
                    SourceLogEvent.FEED_FAILED,
                    self.name,
                    group.urlname,
                    exc,
                    exc_info=exc,
                )
                continue
            logger.info(
                "[%s] source=%s group=%s entries=%d",
                SourceLogEvent.FEED_FETCHED,
                self.name,
                group.urlname,
                len(nodes),
            )
            for node in nodes:
                event = self._to_canonical(group, node)
                if event is not None:
                    events.append(event)
        if len(failures) == len(self._config.groups):
            raise SourceAPIError.all_failed(
                self.name, len(failures), failures[-1]
            ) from failures[-1]
        return events

    async def _fetch_group(self, group: MeetupGroup) -> list[MeetupEventNode]:
        """Try GraphQL, then the group page when GraphQL fails or is empty."""
        try:
            nodes = await self._fetch_graphql(group.urlname)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "[%s] source=%s group=%s reason=graphql_failed error=%s",
                SourceLogEvent.FALLBACK_USED,
                self.name,
                group.urlname,
                exc,
            )
        else:
            if nodes:
                return nodes
            logger.info(
                "[%s] source=%s group=%s reason=graphql_empty",
                SourceLogEvent.FALLBACK_USED,
                self.name,
                group.urlname,
            )
        return await self._fetch_page(group.urlname)

    async def _fetch_graphql(self, urlname: str) -> list[MeetupEventNode]:
        response = await self._client.post(
            self._config.gql_endpoint,
            json={
                "query": _UPCOMING_EVENTS_QUERY,
                "variables": {"urlname": urlname, "first": self._config.page_size},
            },
        )
        payload = self._decode_json(response)
        errors = payload.get("errors")
        if errors:
            raise SourceAPIError.graphql_errors(self.name, errors)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise SourceResponseShapeError.missing(self.name, "data")
        return _nodes_from_graphql(data, urlname)

    async def _fetch_page(self, urlname: str) -> list[MeetupEventNode]:
        response = await self._client.get(
            f"{self._config.site_base.rstrip('/')}/{urlname}/events/",
            headers={"Accept": "text/html"},
        )
        self._check_status(response)
        parsed = parse_group_page(response.text)
        if isinstance(parsed, ParsedEventsFound):
            logger.info(
                "[%s] source=%s group=%s origin=%s entries=%d",
                SourceLogEvent.FALLBACK_PARSED,
                self.name,
                urlname,
                parsed.origin,
                len(parsed.events),
            )
            return list(parsed.events)
        logger.warning(
            "[%s] source=%s group=%s reason=%s",
            SourceLogEvent.FALLBACK_EMPTY,
            self.name,
            urlname,
            parsed.reason,
        )
        return []

    def _to_canonical(
        self, group: MeetupGroup, node: MeetupEventNode
    ) -> CanonicalEvent | None:
        venue = node.venue
        group_ref = node.group or MeetupGroupRef()
        base = self._config.site_base.rstrip("/")
        url = node.event_url or f"{base}/{group.urlname}/events/{node.id}/"
        try:
            return CanonicalEvent(
                platform_id=make_platform_id("meetup", node.id),
                platform=EventPlatform.MEETUP,
                community_slug=group.community_slug,
                title=node.title,
                description=node.description,
                url=url,
                image_url=node.image_url,
                format=normalise_format(node.event_type, MEETUP_FORMATS),
                start_at=parse_iso_datetime(node.date_time),
                end_at=parse_iso_datetime(node.end_time) if node.end_time else None,
                venue=venue.name if venue else None,
                formatted_address=_format_address(venue),
                city=(venue.city if venue else None) or self._config.home_city,
                country=(venue.country if venue else None)
                or self._config.default_country,
                latitude=venue.lat if venue else None,
                longitude=venue.lng if venue else None,
                timezone=group_ref.timezone or self._config.default_timezone,
                platform_data=msgspec.to_builtins(node),
            )
        except ValueError:
            logger.debug("Dropping malformed Meetup event %s", node.id)
            return None
