"""Shared plumbing for source fetchers."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

import httpx
import msgspec

from .errors import SourceAPIError, SourceResponseShapeError

if typ.TYPE_CHECKING:
    from aicalendar.events.models import CanonicalEvent

_HTTP_ERROR_STATUS_THRESHOLD = 400

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; AI-Calendar/1.0; +https://aicalendar.dev)"
)


class SourceLogEvent(enum.StrEnum):
    """Structured log event types emitted by fetchers."""

    FEED_FETCHED = "source.feed.fetched"
    FEED_FAILED = "source.feed.failed"
    FEED_SKIPPED = "source.feed.skipped"
    GEO_FILTERED = "source.geo.filtered"
    FALLBACK_USED = "source.fallback.used"
    FALLBACK_PARSED = "source.fallback.parsed"
    FALLBACK_EMPTY = "source.fallback.empty"


class EventSource(typ.Protocol):
    """Interface every source fetcher implements."""

    name: str

    async def fetch(self) -> list[CanonicalEvent]:
        """Return canonical events gathered from the source."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class HTTPClientConfig:
    """Transport knobs shared by the fetchers."""

    timeout_s: float = 20.0
    user_agent: str = DEFAULT_USER_AGENT


class HTTPFetcherBase:
    """Own or borrow an ``httpx.AsyncClient`` and decode JSON responses."""

    name: str = "source"

    def __init__(
        self,
        http: HTTPClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Use ``http_client`` when given, otherwise build an owned client."""
        resolved = http or HTTPClientConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=resolved.timeout_s,
            headers={"User-Agent": resolved.user_agent},
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def _check_status(self, response: httpx.Response) -> None:
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise SourceAPIError.http_error(self.name, response.status_code)

    def _decode_json(self, response: httpx.Response) -> dict[str, typ.Any]:
        """Validate the status and decode a JSON object body."""
        self._check_status(response)
        try:
            payload = msgspec.json.decode(response.content)
        except msgspec.DecodeError as exc:
            raise SourceResponseShapeError.missing(self.name, "json body") from exc
        if not isinstance(payload, dict):
            raise SourceResponseShapeError.missing(self.name, "response")
        return payload

    async def _get_json(
        self, url: str, *, params: dict[str, str] | None = None
    ) -> dict[str, typ.Any]:
        response = await self._client.get(url, params=params)
        return self._decode_json(response)


def convert_or_none[T](raw: object, type_: type[T]) -> T | None:
    """Convert ``raw`` into ``type_``; malformed records yield ``None``."""
    try:
        return msgspec.convert(raw, type=type_)
    except msgspec.ValidationError:
        return None
