"""Fan-out over the configured sources, filter, dedupe and upsert."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from aicalendar.common.time import utcnow
from aicalendar.common.urls import normalise_event_url

from .observability import IngestionEventLogger
from .settle import Rejected, gather_settled

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from aicalendar.events.models import CanonicalEvent
    from aicalendar.sources.base import EventSource
    from aicalendar.storage.upsert import EventSink


@dc.dataclass(frozen=True, slots=True)
class IngestionConfig:
    """Tuning for a single ingestion run.

    Attributes
    ----------
    batch_size
        Records per upsert call. Each batch commits on its own, so a failing
        batch never discards the ones before it.

    """

    batch_size: int = 100

    def __post_init__(self) -> None:
        """Reject batch sizes that would never write anything."""
        if self.batch_size < 1:
            msg = f"batch_size must be positive, got: {self.batch_size}"
            raise ValueError(msg)


@dc.dataclass(slots=True)
class IngestionStats:
    """Counters and error messages accumulated over one run."""

    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = dc.field(default_factory=list)
    started_at: dt.datetime | None = None
    finished_at: dt.datetime | None = None

    def as_dict(self) -> dict[str, typ.Any]:
        """Return the counters as a JSON-ready mapping."""
        return {
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


def split_upcoming(
    events: cabc.Iterable[CanonicalEvent], now: dt.datetime
) -> tuple[list[CanonicalEvent], int]:
    """Return events starting at or after ``now`` and the number dropped."""
    upcoming: list[CanonicalEvent] = []
    past = 0
    for event in events:
        if event.start_at < now:
            past += 1
        else:
            upcoming.append(event)
    return upcoming, past


def dedupe_by_url(
    events: cabc.Iterable[CanonicalEvent],
) -> tuple[list[CanonicalEvent], int]:
    """Keep the first event per normalised URL; return survivors and drops."""
    seen: set[str] = set()
    unique: list[CanonicalEvent] = []
    duplicates = 0
    for event in events:
        key = normalise_event_url(event.url)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        unique.append(event)
    return unique, duplicates


class IngestionAggregator:
    """Merge every source into storage and report what happened.

    Sources are fetched concurrently; everything after the fan-in is
    sequential. :meth:`run` records failures in the returned stats instead of
    raising, so the caller always gets a result.
    """

    def __init__(
        self,
        sources: cabc.Sequence[EventSource],
        sink: EventSink,
        *,
        config: IngestionConfig | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
        event_logger: IngestionEventLogger | None = None,
    ) -> None:
        """Configure the aggregator with its sources and persistence sink."""
        self._sources = tuple(sources)
        self._sink = sink
        self._config = config or IngestionConfig()
        self._clock = clock
        self._event_logger = event_logger or IngestionEventLogger()

    @property
    def source_names(self) -> tuple[str, ...]:
        """Names of the configured sources in fan-out order."""
        return tuple(source.name for source in self._sources)

    async def run(self) -> IngestionStats:
        """Fetch, filter, dedupe and upsert; return the run's counters."""
        started_at = self._clock()
        stats = IngestionStats(started_at=started_at)
        self._event_logger.log_run_started(started_at, self.source_names)

        collected = await self._collect(stats)
        upcoming, past = split_upcoming(collected, self._clock())
        unique, duplicates = dedupe_by_url(upcoming)
        stats.skipped = past + duplicates
        self._event_logger.log_filtered(
            past=past, duplicates=duplicates, remaining=len(unique)
        )

        await self._write(unique, stats)

        finished_at = self._clock()
        stats.finished_at = finished_at
        self._event_logger.log_run_completed(stats, finished_at - started_at)
        return stats

    async def _collect(self, stats: IngestionStats) -> list[CanonicalEvent]:
        outcomes = await gather_settled(source.fetch() for source in self._sources)
        collected: list[CanonicalEvent] = []
        for source, outcome in zip(self._sources, outcomes, strict=True):
            if isinstance(outcome, Rejected):
                stats.errors.append(f"{source.name} fetch failed: {outcome.error}")
                self._event_logger.log_source_failed(source.name, outcome.error)
                continue
            collected.extend(outcome.value)
            self._event_logger.log_source_fetched(source.name, len(outcome.value))
        return collected

    async def _write(
        self, events: cabc.Sequence[CanonicalEvent], stats: IngestionStats
    ) -> None:
        size = self._config.batch_size
        for offset in range(0, len(events), size):
            batch = events[offset : offset + size]
            try:
                counts = await self._sink.upsert(batch)
            except Exception as exc:  # noqa: BLE001
                stats.errors.append(f"Batch upsert failed (offset {offset}): {exc}")
                self._event_logger.log_batch_failed(offset, len(batch), exc)
                continue
            stats.inserted += counts.inserted
            stats.updated += counts.updated
