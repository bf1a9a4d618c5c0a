"""HTTP API for health checks and the ingestion trigger."""

from __future__ import annotations

from .app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
