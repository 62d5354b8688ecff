from __future__ import annotations

import asyncio
import logging
from typing import Any

from release_calendar.core.config import settings
from release_calendar.db.session import async_session, init_db
from release_calendar.ingestion import build_adapters
from release_calendar.ingestion.observability import ingestion_monitor
from release_calendar.ingestion.token_cache import TokenCache
from release_calendar.services.release_store import SQLAlchemyReleaseStore
from release_calendar.services.release_writer import ReleaseWriter
from release_calendar.services.sync_service import run_daily_sync

logger = logging.getLogger("release_calendar.jobs.sync")


async def run_daily_sync_once() -> dict[str, Any]:
    """Run one full sync against the configured database."""
    await init_db()
    token_cache = TokenCache(
        settings.igdb_client_id,
        settings.igdb_client_secret,
        safety_margin_seconds=settings.token_safety_margin_seconds,
    )
    adapters = build_adapters(settings=settings, token_cache=token_cache, monitor=ingestion_monitor)
    async with async_session() as session:
        writer = ReleaseWriter(SQLAlchemyReleaseStore(session))
        summary = await run_daily_sync(adapters, writer, monitor=ingestion_monitor)
    return summary.as_dict()


def run_daily_sync_job() -> dict[str, Any]:
    """RQ-friendly daily release sync hook."""
    summary = asyncio.run(run_daily_sync_once())
    logger.info("Daily sync job complete: %d releases saved", summary["total_saved"])
    return summary
