"""Ingestion trigger resource."""

from __future__ import annotations

from .resources import IngestionRunner, IngestResource, is_authorized

__all__ = ["IngestResource", "IngestionRunner", "is_authorized"]
