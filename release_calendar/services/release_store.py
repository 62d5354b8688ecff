"""Durable store seam for canonical release records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from release_calendar.models.release import ReleaseItem
from release_calendar.schema.release import ReleaseRecord

_COLUMNS = tuple(column.key for column in ReleaseItem.__table__.columns)


class StoreError(Exception):
    """Raised when the backing store cannot read or write a record."""


class ReleaseStore(Protocol):
    async def get(self, record_id: str) -> ReleaseRecord | None: ...

    async def put(self, record: ReleaseRecord) -> None: ...


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on round-trip; stored values are always UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SQLAlchemyReleaseStore:
    """ReleaseStore backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, record_id: str) -> ReleaseRecord | None:
        try:
            result = await self.session.execute(select(ReleaseItem).where(ReleaseItem.id == record_id))
            row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StoreError(f"Failed to read release {record_id}: {exc}") from exc
        if row is None:
            return None
        record = ReleaseRecord.model_validate(row)
        record.created_at = _as_utc(record.created_at)
        record.updated_at = _as_utc(record.updated_at)
        return record

    async def put(self, record: ReleaseRecord) -> None:
        """Write the full record, replacing any existing row with the same id."""
        if not record.id:
            raise StoreError("Cannot store a release without an id")
        values = record.model_dump(include=set(_COLUMNS))
        try:
            await self.session.merge(ReleaseItem(**values))
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StoreError(f"Failed to write release {record.id}: {exc}") from exc
