"""Unit tests for the AI Collective chapter fetcher."""

from __future__ import annotations

import typing as typ

import httpx
import pytest

from aicalendar.events.models import EventFormat, EventPlatform
from aicalendar.sources.aic import AICollectiveConfig, AICollectiveFetcher
from aicalendar.sources.errors import SourceAPIError, SourceResponseShapeError

Route = typ.Callable[[httpx.Request], httpx.Response]


def _record(platform_id: str, **fields: object) -> dict[str, typ.Any]:
    record: dict[str, typ.Any] = {
        "platformId": platform_id,
        "title": f"AIC {platform_id}",
        "url": f"https://lu.ma/aic-{platform_id}",
        "startAt": "2099-04-01T01:00:00Z",
        "geoLatitude": "45.52",
        "geoLongitude": "-122.68",
    }
    record.update(fields)
    return record


def _fetcher(handler: Route) -> tuple[AICollectiveFetcher, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_recording))
    return AICollectiveFetcher(AICollectiveConfig(), http_client=client), requests


@pytest.mark.asyncio
async def test_maps_chapter_events() -> None:
    """Records inside the geo-fence map onto canonical events."""
    payload = {
        "events": [
            _record(
                "e1", format="Hackathon", isFeatured=True, imageUrl="https://i/1.png"
            )
        ]
    }
    fetcher, requests = _fetcher(lambda _request: httpx.Response(200, json=payload))

    events = await fetcher.fetch()

    params = requests[0].url.params
    assert requests[0].url.path == "/api/public/events"
    assert (params["chapter"], params["upcoming"], params["limit"]) == (
        "portland",
        "true",
        "50",
    )
    event = events[0]
    assert event.platform_id == "aic-e1"
    assert event.platform is EventPlatform.LUMA, "AIC events are hosted on Luma"
    assert event.community_slug == "aic-portland"
    assert event.format is EventFormat.HACKATHON
    assert event.is_featured is True
    assert event.latitude == pytest.approx(45.52)
    assert event.longitude == pytest.approx(-122.68)
    assert event.city == "Portland"
    assert event.timezone == "America/Los_Angeles"
    assert event.platform_data["platformId"] == "e1"


@pytest.mark.asyncio
async def test_link_used_when_url_missing() -> None:
    """The ``link`` field stands in for a missing ``url``."""
    payload = {"events": [_record("e1", url=None, link="https://aic.test/e1")]}
    fetcher, _ = _fetcher(lambda _request: httpx.Response(200, json=payload))

    events = await fetcher.fetch()

    assert events[0].url == "https://aic.test/e1"


@pytest.mark.asyncio
async def test_null_featured_flag_keeps_the_event() -> None:
    """A null ``isFeatured`` maps to not featured instead of dropping the record."""
    payload = {"events": [_record("e1", isFeatured=None)]}
    fetcher, _ = _fetcher(lambda _request: httpx.Response(200, json=payload))

    events = await fetcher.fetch()

    assert [event.platform_id for event in events] == ["aic-e1"]
    assert events[0].is_featured is False


@pytest.mark.asyncio
async def test_records_outside_geo_fence_are_dropped() -> None:
    """Distant, missing or unparsable coordinates are excluded."""
    payload = {
        "events": [
            _record("near"),
            _record("far", geoLatitude="40.7128", geoLongitude="-74.0060"),
            _record("none", geoLatitude=None, geoLongitude=None),
            _record("junk", geoLatitude="n/a"),
            _record("numeric", geoLatitude=45.5, geoLongitude=-122.6),
        ]
    }
    fetcher, _ = _fetcher(lambda _request: httpx.Response(200, json=payload))

    events = await fetcher.fetch()

    assert [event.platform_id for event in events] == ["aic-near", "aic-numeric"]


@pytest.mark.asyncio
async def test_records_without_title_or_url_are_dropped() -> None:
    """Records that cannot form a valid event are skipped silently."""
    payload = {
        "events": [
            _record("untitled", title=None),
            _record("nourl", url=None),
            _record("nostart", startAt=None),
            _record("ok"),
        ]
    }
    fetcher, _ = _fetcher(lambda _request: httpx.Response(200, json=payload))

    events = await fetcher.fetch()

    assert [event.platform_id for event in events] == ["aic-ok"]


@pytest.mark.asyncio
async def test_falls_back_to_past_listing_when_no_upcoming() -> None:
    """An empty upcoming listing is followed by the past listing."""

    def _handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["upcoming"] == "true":
            return httpx.Response(200, json={"events": []})
        return httpx.Response(200, json={"events": [_record("old")]})

    fetcher, requests = _fetcher(_handler)

    events = await fetcher.fetch()

    assert [request.url.params["upcoming"] for request in requests] == [
        "true",
        "false",
    ]
    assert [event.platform_id for event in events] == ["aic-old"]


@pytest.mark.asyncio
async def test_http_error_propagates() -> None:
    """Request failures surface to the aggregator."""
    fetcher, _ = _fetcher(lambda _request: httpx.Response(503, json={}))

    with pytest.raises(SourceAPIError) as excinfo:
        await fetcher.fetch()

    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_missing_events_key_is_a_shape_error() -> None:
    """A payload without an events list is schema drift."""
    fetcher, _ = _fetcher(lambda _request: httpx.Response(200, json={"data": []}))

    with pytest.raises(SourceResponseShapeError, match="events"):
        await fetcher.fetch()
