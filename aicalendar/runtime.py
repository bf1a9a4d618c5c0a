"""Service entrypoint for the ingestion trigger.

The ``aicalendar.runtime:create_app`` factory is what Granian loads. When
``AICAL_DATABASE_URL`` is set it wires an :class:`IngestionService` behind
``/ingest``; otherwise the app serves only ``/health`` and ``/ready``.

Configuration is driven by environment variables:

- ``AICAL_HOST``: Bind address (default ``0.0.0.0``)
- ``AICAL_PORT``: Listen port (default ``8080``)
- ``AICAL_LOG_LEVEL``: Log level (default ``INFO``)
- ``AICAL_DATABASE_URL``: Database URL (optional; enables ``/ingest``)
- ``AICAL_CRON_SECRET``: Bearer secret for ``/ingest`` (optional)

See :class:`aicalendar.config.IngestionSettings` for the ingestion knobs.
Run the service directly with ``python -m aicalendar.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from aicalendar.config import IngestionSettings
from aicalendar.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If ``port_str`` is not an integer in the range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid AICAL_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the environment.

    Returns
    -------
    falcon.asgi.App
        Health-only when no database is configured, otherwise with
        ``/ingest`` wired to a fresh :class:`IngestionService`.

    """
    from aicalendar.api.app import AppDependencies
    from aicalendar.api.app import create_app as _create_api_app

    settings = IngestionSettings.from_env()

    if settings.database_url is None:
        log_info(logger, "AICAL_DATABASE_URL unset; serving health checks only")
        return _create_api_app()

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from aicalendar.ingestion.factory import create_http_client
    from aicalendar.ingestion.service import IngestionService

    engine = create_async_engine(settings.database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    service = IngestionService(
        engine,
        session_factory,
        settings,
        http_client=create_http_client(settings),
    )
    log_info(
        logger,
        "Ingest endpoint enabled for sources: %s",
        ", ".join(service.aggregator.source_names) or "(none)",
    )
    return _create_api_app(
        AppDependencies(runner=service, cron_secret=settings.cron_secret)
    )


def main() -> None:
    """Start the ingestion service under Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    settings = IngestionSettings.from_env()
    port = _parse_port(os.environ.get("AICAL_PORT", "8080"))

    normalized_level, invalid_level = configure_logging(settings.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid AICAL_LOG_LEVEL %r, falling back to %s",
            settings.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting aicalendar runtime on %s:%d (log_level=%s)",
        settings.host,
        port,
        normalized_level,
    )

    server = Granian(
        "aicalendar.runtime:create_app",
        address=settings.host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
