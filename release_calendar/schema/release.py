"""Canonical release record shared by adapters, the writer, and the store."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field, field_validator

from release_calendar.models.release import ReleaseKind
from release_calendar.schema.base import ORMModel


class ReleaseRecord(ORMModel):
    """Store-ready representation of one game or book release."""
    id: str | None = None
    kind: ReleaseKind
    title: str = Field(min_length=1)
    release_date: date
    platform: str | None = None
    genre: str | None = None
    publisher: str | None = None
    developer: str | None = None
    description: str | None = None
    price: int | None = None
    currency: str = "JPY"
    image_url: str | None = None
    product_url: str | None = None
    critic_score: int | None = None
    user_score: int | None = None
    source_name: str
    isbn: str | None = None
    jan_code: str | None = None
    igdb_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("isbn", "jan_code", mode="before")
    @classmethod
    def _blank_identifier(cls, value: object) -> object:
        """Treat blank provider identifiers as missing."""
        if isinstance(value, str):
            return value.strip() or None
        return value
