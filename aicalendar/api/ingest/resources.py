"""HTTP trigger for ingestion runs.

``GET`` and ``POST /ingest`` both start a run so the endpoint works with
schedulers that only issue GET requests. When a cron secret is configured,
callers must send ``Authorization: Bearer <secret>``.
"""

from __future__ import annotations

import asyncio
import hmac
import typing as typ
from http import HTTPStatus

from aicalendar.api.errors import UnauthorizedError
from aicalendar.common.time import utcnow
from aicalendar.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from falcon.asgi import Request, Response

    from aicalendar.ingestion.aggregator import IngestionStats


logger = get_logger(__name__)

_BEARER_PREFIX = "Bearer "


class IngestionRunner(typ.Protocol):
    """Anything that performs one ingestion pass and reports its stats."""

    async def run(self) -> IngestionStats:
        """Run the pipeline once."""
        ...


def is_authorized(header: str | None, secret: str | None) -> bool:
    """Return True when ``header`` carries ``secret`` as a bearer token.

    Examples
    --------
    >>> is_authorized(None, None)
    True
    >>> is_authorized("Bearer s3cret", "s3cret")
    True
    >>> is_authorized("Bearer wrong", "s3cret")
    False

    """
    if not secret:
        return True
    if header is None or not header.startswith(_BEARER_PREFIX):
        return False
    token = header.removeprefix(_BEARER_PREFIX)
    return hmac.compare_digest(token.encode(), secret.encode())


class IngestResource:
    """Run the aggregator on request and return its stats."""

    def __init__(
        self,
        runner: IngestionRunner,
        *,
        cron_secret: str | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Bind the runner, optional secret and clock."""
        self._runner = runner
        self._cron_secret = cron_secret
        self._clock = clock
        self._lock = asyncio.Lock()

    async def on_get(self, req: Request, resp: Response) -> None:
        """Trigger a run via GET."""
        await self._trigger(req, resp)

    async def on_post(self, req: Request, resp: Response) -> None:
        """Trigger a run via POST."""
        await self._trigger(req, resp)

    async def _trigger(self, req: Request, resp: Response) -> None:
        if not is_authorized(req.get_header("Authorization"), self._cron_secret):
            log_warning(logger, "Rejected ingest trigger from %s", req.remote_addr)
            raise UnauthorizedError

        # One run at a time per process.
        async with self._lock:
            stats = await self._runner.run()

        log_info(
            logger,
            "Ingest trigger finished: inserted=%d updated=%d skipped=%d errors=%d",
            stats.inserted,
            stats.updated,
            stats.skipped,
            len(stats.errors),
        )
        resp.media = {
            "ok": True,
            "stats": stats.as_dict(),
            "timestamp": self._clock().isoformat(),
        }
        resp.status = HTTPStatus.OK
