"""Parse the event data Meetup embeds in its public group pages.

Meetup's group listing is a Next.js page whose server-rendered state lives in
a ``<script id="__NEXT_DATA__">`` tag. Two layouts have been observed: a plain
``upcomingEvents`` list, and an Apollo cache keyed by ``Event:<id>``. Both are
undocumented, so the parser reports which one matched, or why none did.
"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec
from bs4 import BeautifulSoup

from .base import convert_or_none
from .errors import SourceResponseShapeError

NonEmptyStr = typ.Annotated[str, msgspec.Meta(min_length=1)]

_APOLLO_EVENT_PREFIX = "Event:"


class MeetupVenue(msgspec.Struct):
    """Venue block shared by the GraphQL and page payloads."""

    name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    lat: float | None = None
    lng: float | None = None


class MeetupGroupRef(msgspec.Struct):
    """Group reference carried on each event node."""

    urlname: str | None = None
    timezone: str | None = None


class MeetupEventNode(msgspec.Struct, rename="camel"):
    """Minimum viable Meetup event: ``id``, ``title`` and ``dateTime`` are set."""

    id: NonEmptyStr
    title: NonEmptyStr
    date_time: NonEmptyStr
    description: str | None = None
    event_url: str | None = None
    end_time: str | None = None
    going: typ.Any = None
    image_url: str | None = None
    event_type: str | None = None
    venue: MeetupVenue | None = None
    group: MeetupGroupRef | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ParsedEventsFound:
    """Events recovered from the page and the layout they came from."""

    events: tuple[MeetupEventNode, ...]
    origin: typ.Literal["upcoming", "apollo"]


@dataclasses.dataclass(frozen=True, slots=True)
class ParsedEventsNotFound:
    """The page decoded but held no recognisable event data."""

    reason: str


ParsedEvents: typ.TypeAlias = ParsedEventsFound | ParsedEventsNotFound


def _extract_next_data(html: str) -> dict[str, typ.Any]:
    soup = BeautifulSoup(html, "html.parser")
    script = soup.find("script", id="__NEXT_DATA__")
    text = script.string if script is not None else None
    if not text:
        raise SourceResponseShapeError.missing("meetup", "__NEXT_DATA__")
    try:
        payload = msgspec.json.decode(text)
    except msgspec.DecodeError as exc:
        raise SourceResponseShapeError.missing("meetup", "__NEXT_DATA__") from exc
    if not isinstance(payload, dict):
        raise SourceResponseShapeError.missing("meetup", "__NEXT_DATA__")
    return payload


def _page_props(payload: dict[str, typ.Any]) -> dict[str, typ.Any]:
    props = payload.get("props")
    page_props = props.get("pageProps") if isinstance(props, dict) else None
    return page_props if isinstance(page_props, dict) else {}


def _valid_nodes(items: typ.Iterable[object]) -> tuple[MeetupEventNode, ...]:
    nodes = (convert_or_none(item, MeetupEventNode) for item in items)
    return tuple(node for node in nodes if node is not None)


def parse_group_page(html: str) -> ParsedEvents:
    """Recover events from a Meetup group events page.

    Parameters
    ----------
    html
        Raw HTML of ``https://www.meetup.com/<urlname>/events/``.

    Returns
    -------
    ParsedEvents
        :class:`ParsedEventsFound` tagged with the matching layout, or
        :class:`ParsedEventsNotFound` explaining why nothing was recovered.

    Raises
    ------
    SourceResponseShapeError
        If the page carries no decodable ``__NEXT_DATA__`` script.

    """
    page_props = _page_props(_extract_next_data(html))

    upcoming = page_props.get("upcomingEvents")
    if isinstance(upcoming, list):
        return ParsedEventsFound(events=_valid_nodes(upcoming), origin="upcoming")

    apollo = page_props.get("__APOLLO_STATE__")
    if not isinstance(apollo, dict):
        return ParsedEventsNotFound(
            reason="pageProps has neither upcomingEvents nor __APOLLO_STATE__"
        )

    events = _valid_nodes(
        value
        for key, value in apollo.items()
        if isinstance(key, str) and key.startswith(_APOLLO_EVENT_PREFIX)
    )
    if not events:
        return ParsedEventsNotFound(
            reason=(
                "__APOLLO_STATE__ holds no Event entries with id, title and dateTime"
            )
        )
    return ParsedEventsFound(events=events, origin="apollo")
