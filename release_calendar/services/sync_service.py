"""Daily release sync workflow across all providers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from release_calendar.ingestion.base import AdapterResult, BaseAdapter, ErrorKind, StageError
from release_calendar.ingestion.observability import IngestionMonitor
from release_calendar.services.release_writer import ReleaseWriter
from release_calendar.utils.datetime import Clock, utcnow

logger = logging.getLogger("release_calendar.services.sync")


@dataclass(slots=True)
class ProviderSummary:
    """Per-provider counts for one sync run."""
    provider: str
    fetched: int = 0
    dropped: int = 0
    saved: int = 0
    failed_writes: int = 0
    skipped: bool = False
    errors: list[StageError] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "fetched": self.fetched,
            "dropped": self.dropped,
            "saved": self.saved,
            "failed_writes": self.failed_writes,
            "skipped": self.skipped,
            "errors": [
                {"kind": error.kind.value, "operation": error.operation, "detail": error.detail}
                for error in self.errors
            ],
        }


@dataclass(slots=True)
class SyncSummary:
    """Aggregated outcome of a sync run."""
    started_at: datetime
    finished_at: datetime | None = None
    providers: list[ProviderSummary] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def total_saved(self) -> int:
        return sum(provider.saved for provider in self.providers)

    def error_kinds(self) -> list[ErrorKind]:
        return [error.kind for provider in self.providers for error in provider.errors]

    def as_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "total_saved": self.total_saved,
            "providers": [provider.as_dict() for provider in self.providers],
            "metrics": self.metrics,
        }


async def _sync_provider(adapter: BaseAdapter, writer: ReleaseWriter, summary: ProviderSummary) -> None:
    logger.info("Fetching %s...", adapter.source_name)
    result: AdapterResult = await adapter.fetch()
    summary.fetched = len(result.records)
    summary.dropped = result.dropped
    summary.skipped = result.skipped
    summary.errors.extend(result.errors)
    logger.info("Found %d releases from %s", summary.fetched, adapter.source_name)

    for record in result.records:
        outcome = await writer.upsert(record)
        if outcome.ok:
            summary.saved += 1
            continue
        summary.failed_writes += 1
        if outcome.error:
            summary.errors.append(outcome.error)


async def run_daily_sync(
    adapters: Sequence[BaseAdapter],
    writer: ReleaseWriter,
    *,
    monitor: IngestionMonitor | None = None,
    clock: Clock = utcnow,
) -> SyncSummary:
    """Run every adapter in order and upsert what each returns.

    Implementation notes:
    - Providers run strictly one after another; a failure inside one
      provider's fetch or write loop is recorded and the next provider runs.
    - Anything escaping those guards is logged and re-raised so the job
      runner marks the invocation as failed.
    """
    summary = SyncSummary(started_at=clock())
    logger.info("Daily sync started: %s", summary.started_at.isoformat())
    try:
        for adapter in adapters:
            provider_summary = ProviderSummary(provider=adapter.source_name)
            summary.providers.append(provider_summary)
            try:
                await _sync_provider(adapter, writer, provider_summary)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Sync failed for provider %s", adapter.source_name)
                provider_summary.errors.append(
                    StageError(ErrorKind.UNEXPECTED, adapter.source_name, f"{exc.__class__.__name__}: {exc}")
                )
        if monitor is not None:
            summary.metrics = await monitor.snapshot()
    except Exception:
        logger.exception("Daily sync failed")
        raise
    summary.finished_at = clock()
    logger.info("Daily sync completed. Total items saved: %d", summary.total_saved)
    for provider in summary.providers:
        logger.info(
            "  %s: fetched=%d dropped=%d saved=%d failed_writes=%d skipped=%s errors=%d",
            provider.provider,
            provider.fetched,
            provider.dropped,
            provider.saved,
            provider.failed_writes,
            provider.skipped,
            len(provider.errors),
        )
    return summary
