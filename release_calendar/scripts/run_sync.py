"""Run the daily release sync once, outside the scheduler."""

from __future__ import annotations

import argparse
import json

from release_calendar.jobs.schedule_registry import ensure_schedules
from release_calendar.jobs.sync import run_daily_sync_job
from release_calendar.worker import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch upcoming game and book releases and store them")
    parser.add_argument(
        "--register-schedule",
        action="store_true",
        help="Register the daily cron job with rq-scheduler instead of syncing now",
    )
    parser.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    args = parser.parse_args()

    configure_logging()
    if args.register_schedule:
        registered = ensure_schedules()
        print(f"Registered {len(registered)} schedule(s).")
        return 0

    summary = run_daily_sync_job()
    if args.json:
        print(json.dumps(summary, ensure_ascii=False, indent=2))
    else:
        print(f"Saved {summary['total_saved']} release(s).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
