"""Release calendar models for games and books."""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from release_calendar.core.config import settings
from release_calendar.db.base_class import Base


class ReleaseKind(str, enum.Enum):
    """Supported release categories."""
    GAME = "GAME"
    BOOK = "BOOK"


class ReleaseItem(Base):
    """Canonical release row read by the calendar front end."""
    __tablename__ = settings.release_table_name

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    kind: Mapped[ReleaseKind] = mapped_column(
        Enum(ReleaseKind, name="release_kind", values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    release_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    platform: Mapped[str | None] = mapped_column(String(255))
    genre: Mapped[str | None] = mapped_column(String(255))
    publisher: Mapped[str | None] = mapped_column(String(255))
    developer: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[int | None] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="JPY")
    image_url: Mapped[str | None] = mapped_column(String(1024))
    product_url: Mapped[str | None] = mapped_column(String(1024))
    critic_score: Mapped[int | None] = mapped_column(Integer)
    user_score: Mapped[int | None] = mapped_column(Integer)
    source_name: Mapped[str] = mapped_column(String(64), nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(32))
    jan_code: Mapped[str | None] = mapped_column(String(32))
    igdb_id: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
