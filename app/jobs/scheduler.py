"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.jobs.election_status_sweep import election_status_sweep
from app.jobs.otp_cleanup import otp_cleanup

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("election_status_sweep") is None:
        scheduler.add_job(
            election_status_sweep,
            CronTrigger(minute="*", timezone=settings.timezone),
            id="election_status_sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    if scheduler.get_job("otp_cleanup") is None:
        scheduler.add_job(
            otp_cleanup,
            IntervalTrigger(
                minutes=settings.otp_cleanup_interval_minutes,
                timezone=settings.timezone,
            ),
            id="otp_cleanup",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
