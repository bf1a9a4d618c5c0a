"""Ingestion pipeline: concurrent fan-out, filtering, dedupe and batched upsert."""

from __future__ import annotations

from .aggregator import (
    IngestionAggregator,
    IngestionConfig,
    IngestionStats,
    dedupe_by_url,
    split_upcoming,
)
from .factory import (
    build_aggregator,
    build_sources,
    create_http_client,
    load_sources_config,
)
from .observability import (
    ErrorCategory,
    IngestionEventLogger,
    IngestionEventType,
    categorize_error,
)
from .service import IngestionService
from .settle import Fulfilled, Rejected, Settled, gather_settled

__all__ = [
    "ErrorCategory",
    "Fulfilled",
    "IngestionAggregator",
    "IngestionConfig",
    "IngestionEventLogger",
    "IngestionEventType",
    "IngestionService",
    "IngestionStats",
    "Rejected",
    "Settled",
    "build_aggregator",
    "build_sources",
    "categorize_error",
    "create_http_client",
    "dedupe_by_url",
    "gather_settled",
    "load_sources_config",
    "split_upcoming",
]
