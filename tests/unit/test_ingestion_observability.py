"""Unit tests for ingestion error categorisation and structured events."""

from __future__ import annotations

import datetime as dt
import logging

import httpx
import msgspec
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from aicalendar.ingestion.aggregator import IngestionStats
from aicalendar.ingestion.observability import (
    ErrorCategory,
    IngestionEventLogger,
    IngestionEventType,
    categorize_error,
)
from aicalendar.sources.errors import (
    SourceAPIError,
    SourceConfigError,
    SourceResponseShapeError,
)
from aicalendar.sources.loader import SourcesConfigError

_LOGGER = "aicalendar.ingestion.observability"


class TestCategorizeError:
    """Mapping of exceptions onto alert categories."""

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (SourceAPIError.http_error("luma", 503), ErrorCategory.TRANSIENT),
            (SourceAPIError.http_error("luma", 404), ErrorCategory.CLIENT_ERROR),
            (
                SourceAPIError.graphql_errors("meetup", ["boom"]),
                ErrorCategory.CLIENT_ERROR,
            ),
            (httpx.ConnectError("refused"), ErrorCategory.TRANSIENT),
            (httpx.ReadTimeout("slow"), ErrorCategory.TRANSIENT),
            (
                SourceResponseShapeError.missing("aic", "events"),
                ErrorCategory.SCHEMA_DRIFT,
            ),
            (msgspec.ValidationError("bad"), ErrorCategory.SCHEMA_DRIFT),
            (SourceConfigError.empty_sources("luma"), ErrorCategory.CONFIGURATION),
            (SourcesConfigError(["x"]), ErrorCategory.CONFIGURATION),
            (
                OperationalError("SELECT 1", {}, Exception("down")),
                ErrorCategory.DATABASE_CONNECTIVITY,
            ),
            (
                IntegrityError("INSERT", {}, Exception("dup")),
                ErrorCategory.DATA_INTEGRITY,
            ),
            (SQLAlchemyError("generic"), ErrorCategory.DATABASE_ERROR),
            (ValueError("odd"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categories(self, exc: BaseException, expected: ErrorCategory) -> None:
        """Each known failure lands in its alert bucket."""
        assert categorize_error(exc) is expected


class TestIngestionEventLogger:
    """Structured log lines emitted during a run."""

    def test_source_failed_is_logged_at_error(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Failures carry the exception type and category."""
        event_logger = IngestionEventLogger()

        with caplog.at_level(logging.ERROR, logger=_LOGGER):
            event_logger.log_source_failed(
                "meetup", SourceAPIError.http_error("meetup", 502)
            )

        (record,) = caplog.records
        message = record.getMessage()
        assert message.startswith(f"[{IngestionEventType.SOURCE_FAILED}]")
        assert "source=meetup" in message
        assert "error_type=SourceAPIError" in message
        assert "error_category=transient" in message

    def test_run_completed_reports_counters(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Completion lines summarise the stats."""
        stats = IngestionStats(inserted=3, updated=1, skipped=2, errors=["x"])

        with caplog.at_level(logging.INFO, logger=_LOGGER):
            IngestionEventLogger().log_run_completed(
                stats, dt.timedelta(seconds=1.5)
            )

        message = caplog.records[-1].getMessage()
        assert message == (
            "[ingestion.run.completed] duration_seconds=1.500 inserted=3 "
            "updated=1 skipped=2 errors=1"
        )

    def test_filtered_counts(self, caplog: pytest.LogCaptureFixture) -> None:
        """Filter summaries list both drop reasons."""
        with caplog.at_level(logging.INFO, logger=_LOGGER):
            IngestionEventLogger().log_filtered(past=4, duplicates=1, remaining=7)

        assert caplog.records[-1].getMessage() == (
            "[ingestion.events.filtered] past_skipped=4 duplicate_skipped=1 "
            "remaining=7"
        )
