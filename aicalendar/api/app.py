"""Falcon ASGI application factory for the ingestion service.

Usage
-----
Create an app that only serves health checks::

    from aicalendar.api.app import create_app

    app = create_app()

Create an app with the ingestion trigger wired::

    from aicalendar.api.app import AppDependencies, create_app

    deps = AppDependencies(runner=aggregator, cron_secret="s3cret")
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from aicalendar.api.errors import UnauthorizedError, handle_unauthorized
from aicalendar.api.health.resources import HealthResource, ReadyResource
from aicalendar.api.ingest.resources import IngestResource

if typ.TYPE_CHECKING:
    from aicalendar.api.ingest.resources import IngestionRunner


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Optional collaborators for the HTTP application.

    Attributes
    ----------
    runner
        Ingestion runner behind ``/ingest``. When None only the health
        endpoints are registered.
    cron_secret
        Bearer secret required on ``/ingest``. When None the endpoint is open.

    """

    runner: IngestionRunner | None = None
    cron_secret: str | None = None


def create_app(dependencies: AppDependencies | None = None) -> falcon.asgi.App:
    """Build the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional collaborators; omit for a health-only app.

    Returns
    -------
    falcon.asgi.App
        App serving ``/health``, ``/ready`` and, when a runner is supplied,
        ``/ingest``.

    """
    deps = dependencies or AppDependencies()
    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(ingest_enabled=deps.runner is not None))

    if deps.runner is not None:
        app.add_route(
            "/ingest", IngestResource(deps.runner, cron_secret=deps.cron_secret)
        )

    app.add_error_handler(UnauthorizedError, handle_unauthorized)

    return app
