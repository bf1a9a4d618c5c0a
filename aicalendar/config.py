"""Environment-driven settings for ingestion and the HTTP trigger.

Usage
-----
Create settings with defaults:

>>> settings = IngestionSettings()
>>> settings.batch_size
100

Or load from environment variables:

>>> import os
>>> os.environ["AICAL_BATCH_SIZE"] = "25"
>>> IngestionSettings.from_env().batch_size
25

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path


@dc.dataclass(frozen=True, slots=True)
class IngestionSettings:
    """Runtime configuration for ingestion runs.

    Attributes
    ----------
    database_url
        SQLAlchemy async URL. ``None`` leaves the service in health-only mode.
    sources_path
        Optional YAML file listing feeds, groups and communities. Built-in
        defaults apply when unset.
    batch_size
        Records per upsert batch.
    luma_max_pages
        Page cap per Luma feed.
    http_timeout_s
        Timeout applied to every outbound source request.
    cron_secret
        Bearer token required by ``/ingest`` when set.
    host, log_level
        Server bind address and log verbosity. The listen port is read by
        :mod:`aicalendar.runtime`, which validates its range.

    """

    database_url: str | None = None
    sources_path: Path | None = None
    batch_size: int = 100
    luma_max_pages: int = 5
    http_timeout_s: float = 20.0
    cron_secret: str | None = None
    host: str = "0.0.0.0"  # noqa: S104 - bind all interfaces for container
    log_level: str = "INFO"

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _parse_positive_float(env_var: str, default: float) -> float:
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value <= 0:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @staticmethod
    def _optional(env_var: str) -> str | None:
        raw = os.environ.get(env_var, "").strip()
        return raw or None

    @classmethod
    def from_env(cls) -> IngestionSettings:
        """Create settings from ``AICAL_*`` environment variables.

        Reads ``AICAL_DATABASE_URL``, ``AICAL_SOURCES_PATH``,
        ``AICAL_BATCH_SIZE``, ``AICAL_LUMA_MAX_PAGES``,
        ``AICAL_HTTP_TIMEOUT_S``, ``AICAL_CRON_SECRET``, ``AICAL_HOST`` and
        ``AICAL_LOG_LEVEL``.

        Raises
        ------
        ValueError
            If a numeric setting is malformed or not positive.

        """
        sources_path = cls._optional("AICAL_SOURCES_PATH")
        return cls(
            database_url=cls._optional("AICAL_DATABASE_URL"),
            sources_path=Path(sources_path) if sources_path else None,
            batch_size=cls._parse_positive_int("AICAL_BATCH_SIZE", 100),
            luma_max_pages=cls._parse_positive_int("AICAL_LUMA_MAX_PAGES", 5),
            http_timeout_s=cls._parse_positive_float("AICAL_HTTP_TIMEOUT_S", 20.0),
            cron_secret=cls._optional("AICAL_CRON_SECRET"),
            host=os.environ.get("AICAL_HOST", "0.0.0.0"),  # noqa: S104
            log_level=os.environ.get("AICAL_LOG_LEVEL", "INFO"),
        )
