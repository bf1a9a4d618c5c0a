"""Observability primitives for calendar ingestion runs.

Provides structured logging and error categorisation for source fan-out,
filtering and batch writes. Every event is a single log line of the form
``[event.type] key=value ...`` suitable for parsing by log aggregators.
"""

from __future__ import annotations

import enum
import logging
import typing as typ

import httpx
import msgspec
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from aicalendar.sources.errors import (
    SourceAPIError,
    SourceConfigError,
    SourceResponseShapeError,
)
from aicalendar.sources.loader import SourcesConfigError

if typ.TYPE_CHECKING:
    import datetime as dt

    from .aggregator import IngestionStats

logger = logging.getLogger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class IngestionEventType(enum.StrEnum):
    """Structured log event types for ingestion observability."""

    RUN_STARTED = "ingestion.run.started"
    RUN_COMPLETED = "ingestion.run.completed"
    SOURCE_FETCHED = "ingestion.source.fetched"
    SOURCE_FAILED = "ingestion.source.failed"
    EVENTS_FILTERED = "ingestion.events.filtered"
    BATCH_FAILED = "ingestion.batch.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (httpx.TransportError, ErrorCategory.TRANSIENT),
    (SourceResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (msgspec.ValidationError, ErrorCategory.SCHEMA_DRIFT),
    (SourceConfigError, ErrorCategory.CONFIGURATION),
    (SourcesConfigError, ErrorCategory.CONFIGURATION),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    Returns:
        ErrorCategory indicating the type of failure for alert routing.

    """
    # SourceAPIError splits on status: 5xx is worth retrying next run
    if isinstance(exc, SourceAPIError):
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class IngestionEventLogger:
    """Emit structured ingestion events via Python logging.

    Success events are logged at INFO and failures at ERROR, with the error
    category attached so alerts can be routed without parsing messages.
    """

    def log_run_started(
        self, started_at: dt.datetime, source_names: typ.Sequence[str]
    ) -> None:
        """Log ingestion run start."""
        logger.info(
            "[%s] sources=%s started_at=%s",
            IngestionEventType.RUN_STARTED,
            ",".join(source_names),
            started_at.isoformat(),
        )

    def log_source_fetched(self, source: str, events_fetched: int) -> None:
        """Log a source that settled successfully."""
        logger.info(
            "[%s] source=%s events_fetched=%d",
            IngestionEventType.SOURCE_FETCHED,
            source,
            events_fetched,
        )

    def log_source_failed(self, source: str, error: BaseException) -> None:
        """Log a source whose fetch raised, with error categorisation."""
        logger.error(
            "[%s] source=%s error_type=%s error_category=%s error_message=%s",
            IngestionEventType.SOURCE_FAILED,
            source,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_filtered(self, *, past: int, duplicates: int, remaining: int) -> None:
        """Log how many events the future-only and URL filters removed."""
        logger.info(
            "[%s] past_skipped=%d duplicate_skipped=%d remaining=%d",
            IngestionEventType.EVENTS_FILTERED,
            past,
            duplicates,
            remaining,
        )

    def log_batch_failed(self, offset: int, size: int, error: BaseException) -> None:
        """Log a failed batch write with error categorisation."""
        logger.error(
            "[%s] offset=%d batch_size=%d error_type=%s error_category=%s "
            "error_message=%s",
            IngestionEventType.BATCH_FAILED,
            offset,
            size,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_run_completed(
        self, stats: IngestionStats, duration: dt.timedelta
    ) -> None:
        """Log run completion with the final counters."""
        logger.info(
            "[%s] duration_seconds=%.3f inserted=%d updated=%d skipped=%d "
            "errors=%d",
            IngestionEventType.RUN_COMPLETED,
            duration.total_seconds(),
            stats.inserted,
            stats.updated,
            stats.skipped,
            len(stats.errors),
        )
