"""Base adapter primitives and typed stage results for ingestion."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from pydantic import ValidationError

from release_calendar.schema.release import ReleaseRecord

logger = logging.getLogger("release_calendar.ingestion")


class ErrorKind(str, enum.Enum):
    """Failure categories aggregated into sync summaries."""
    MISSING_CREDENTIALS = "missing_credentials"
    TRANSPORT = "transport"
    DATA_QUALITY = "data_quality"
    PERSISTENCE = "persistence"
    UNEXPECTED = "unexpected"


@dataclass(slots=True)
class StageError:
    """A single failure recorded by an adapter, the writer, or the orchestrator."""
    kind: ErrorKind
    operation: str
    detail: str = ""


@dataclass(slots=True)
class AdapterResult:
    """Normalized records plus the failures hit while collecting them."""
    source_name: str
    records: list[ReleaseRecord] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)
    raw_count: int = 0
    dropped: int = 0
    skipped: bool = False

    @classmethod
    def missing_credentials(cls, source_name: str, detail: str) -> "AdapterResult":
        """Soft result for a provider without configured credentials."""
        return cls(
            source_name=source_name,
            errors=[StageError(ErrorKind.MISSING_CREDENTIALS, "credentials", detail)],
            skipped=True,
        )


class BaseAdapter:
    """Abstract adapter for one external release data provider."""
    source_name: str

    async def fetch(self) -> AdapterResult:
        """Fetch and normalize every configured sub-query for this provider."""
        raise NotImplementedError

    def convert(self, raw: dict[str, Any]) -> ReleaseRecord | None:
        """Convert one raw provider record, returning None when it is unusable."""
        raise NotImplementedError

    def normalize_all(self, raw_items: Iterable[dict[str, Any]], result: AdapterResult) -> None:
        """Convert raw items into ``result``, counting the ones that get dropped.

        Non-object entries and records whose fields have unexpected types are
        dropped without affecting the rest of the batch.
        """
        for raw in raw_items:
            result.raw_count += 1
            if not isinstance(raw, dict):
                result.dropped += 1
                logger.debug("Dropping non-object %s entry: %r", self.source_name, raw)
                continue
            try:
                record = self.convert(raw)
            except (ValidationError, AttributeError, TypeError, ValueError) as exc:
                record = None
                logger.debug("Dropping %s record %r: %s", self.source_name, raw.get("title") or raw.get("name"), exc)
            if record is None:
                result.dropped += 1
                continue
            result.records.append(record)
