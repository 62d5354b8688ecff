"""Periodic job registration for rq-scheduler."""
from __future__ import annotations

import logging
from datetime import timedelta

from redis import Redis
from rq_scheduler import Scheduler

from release_calendar.core.config import settings
from release_calendar.jobs.sync import run_daily_sync_job

logger = logging.getLogger("release_calendar.jobs.schedule_registry")

DAILY_SYNC_JOB_ID = "sync:daily_releases"


def _schedule_entries() -> list[dict]:
    queue_name = settings.worker_queue_names[0] if settings.worker_queue_names else "sync"
    return [
        {
            "id": DAILY_SYNC_JOB_ID,
            "func": run_daily_sync_job,
            # Cron strings are evaluated in UTC; 18:00 UTC is 03:00 JST.
            "cron": settings.sync_cron,
            "queue_name": queue_name,
            "timeout": settings.sync_job_timeout_seconds,
        },
    ]


def ensure_schedules(connection: Redis | None = None) -> list[str]:
    """Idempotently register periodic jobs with rq-scheduler."""
    if settings.environment.lower() == "test":
        return []
    connection = connection or Redis.from_url(settings.redis_url)
    scheduler = Scheduler(connection=connection, queue_name=settings.worker_queue_names[0])
    registered: list[str] = []
    for entry in _schedule_entries():
        if entry["id"] in scheduler:
            continue
        scheduler.cron(
            entry["cron"],
            func=entry["func"],
            id=entry["id"],
            queue_name=entry["queue_name"],
            timeout=entry["timeout"],
            result_ttl=int(timedelta(days=1).total_seconds()),
        )
        registered.append(entry["id"])
        logger.info("Scheduled job %s with cron '%s' on queue %s", entry["id"], entry["cron"], entry["queue_name"])
    return registered
