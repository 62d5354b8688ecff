"""Shared pytest fixtures for the release sync tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from release_calendar.core.config import settings
from release_calendar.db.base import Base
from release_calendar.ingestion.observability import IngestionMonitor
from release_calendar.services.release_store import SQLAlchemyReleaseStore


class FrozenClock:
    """Manually advanced clock for expiry and timestamp assertions."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingThrottle:
    """Throttle stand-in that counts waits instead of sleeping."""

    def __init__(self) -> None:
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1


@pytest.fixture(autouse=True)
def _test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "environment", "test")
    monkeypatch.setattr(settings, "rakuten_app_id", None)
    monkeypatch.setattr(settings, "rakuten_affiliate_id", None)
    monkeypatch.setattr(settings, "igdb_client_id", None)
    monkeypatch.setattr(settings, "igdb_client_secret", None)
    monkeypatch.setattr(settings, "http_retry_attempts", 1)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 10, 18, 0, tzinfo=timezone.utc))


@pytest.fixture()
def throttle() -> RecordingThrottle:
    return RecordingThrottle()


@pytest.fixture()
def monitor() -> IngestionMonitor:
    return IngestionMonitor()


@pytest_asyncio.fixture()
async def session() -> AsyncSession:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    TestingSession = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        async with TestingSession() as session:
            yield session
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture()
def store(session: AsyncSession) -> SQLAlchemyReleaseStore:
    return SQLAlchemyReleaseStore(session)
