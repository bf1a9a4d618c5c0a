"""Liveness and readiness endpoints for the ingestion service."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response


class HealthResource:
    """Liveness probe: the process is up and serving requests."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Report ``{"status": "ok"}``."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reporting whether the ingest trigger is wired."""

    def __init__(self, *, ingest_enabled: bool) -> None:
        """Remember whether ``/ingest`` was registered."""
        self._ingest_enabled = ingest_enabled

    async def on_get(self, req: Request, resp: Response) -> None:
        """Report ``{"status": "ready", "ingest": <bool>}``."""
        resp.media = {"status": "ready", "ingest": self._ingest_enabled}
        resp.status = HTTPStatus.OK
