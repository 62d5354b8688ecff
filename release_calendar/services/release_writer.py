"""Identity-key derivation and createdAt-preserving upserts.

Invariants:
- An existing record's ``created_at`` is carried over unchanged; every other
  field is replaced wholesale by the latest fetch.
- ``updated_at`` is set on every successful write.
- Records without a provider identifier receive a unique generated key and
  are therefore never deduplicated across runs.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass

from release_calendar.ingestion.base import ErrorKind, StageError
from release_calendar.schema.release import ReleaseRecord
from release_calendar.services.release_store import ReleaseStore, StoreError
from release_calendar.utils.datetime import Clock, utcnow

logger = logging.getLogger("release_calendar.services.release_writer")

_BASE36 = string.digits + string.ascii_lowercase
FALLBACK_SUFFIX_LENGTH = 9


def _random_suffix(length: int = FALLBACK_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def identity_key(record: ReleaseRecord) -> str:
    """Derive the durable identity key for a release record.

    Priority: ISBN, then JAN code, then the IGDB id prefixed with ``igdb-``.
    Without any of these, a ``<source>-<time_ns>-<random>`` key is generated.
    """
    if record.isbn:
        return record.isbn
    if record.jan_code:
        return record.jan_code
    if record.igdb_id is not None:
        return f"igdb-{record.igdb_id}"
    return f"{record.source_name}-{time.time_ns()}-{_random_suffix()}"


@dataclass(slots=True)
class WriteResult:
    """Outcome of a single upsert."""
    record_id: str
    ok: bool
    created: bool = False
    error: StageError | None = None


class ReleaseWriter:
    """Upsert canonical records into a ReleaseStore."""

    def __init__(self, store: ReleaseStore, *, clock: Clock = utcnow) -> None:
        self.store = store
        self._clock = clock

    async def upsert(self, record: ReleaseRecord) -> WriteResult:
        """Insert or overwrite ``record`` while preserving its first ``created_at``."""
        record_id = record.id or identity_key(record)
        try:
            existing = await self.store.get(record_id)
            now = self._clock()
            incoming = record.model_copy(
                update={
                    "id": record_id,
                    "created_at": existing.created_at if existing and existing.created_at else now,
                    "updated_at": now,
                }
            )
            await self.store.put(incoming)
        except StoreError as exc:
            logger.error("Error saving release %s (%s): %s", record_id, record.title, exc)
            return WriteResult(
                record_id=record_id,
                ok=False,
                error=StageError(ErrorKind.PERSISTENCE, f"save:{record_id}", str(exc)),
            )
        logger.debug("Saved release %s: %s", record_id, record.title)
        return WriteResult(record_id=record_id, ok=True, created=existing is None)
