from .sync import run_daily_sync_job

__all__ = [
    "run_daily_sync_job",
]
"""Background job modules for RQ workers and schedulers."""
