"""
Lunch Weather Bot: Daily Scheduler.

Runs the weather check once a day at SCHEDULER_HOUR in the configured
timezone (weekdays only by default) on an APScheduler AsyncIOScheduler.
Started and shut down from the FastAPI lifespan; an external cron can call
POST /weather-check instead.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

WEATHER_CHECK_JOB_ID = "daily_weather_check"

# a check that starts this late after its slot is skipped, not run
_MISFIRE_GRACE_SECONDS = 15 * 60


def daily_trigger(hour: int, tz_name: str, weekdays_only: bool = True) -> CronTrigger:
    """Cron trigger firing at *hour*:00 local time, Monday-Friday by default."""
    return CronTrigger(
        day_of_week="mon-fri" if weekdays_only else "*",
        hour=hour,
        minute=0,
        timezone=tz_name,
    )


async def run_job_safely(job: Callable[[], Awaitable[object]]) -> None:
    """Await *job*; a failure is logged so the next day's run still happens."""
    try:
        await job()
    except Exception as exc:
        logger.error("Scheduled weather check failed: %s", exc)


def create_scheduler(
    job: Callable[[], Awaitable[object]],
    hour: int,
    tz_name: str,
    weekdays_only: bool = True,
) -> AsyncIOScheduler:
    """Return a not-yet-started scheduler with the daily weather check job."""
    scheduler = AsyncIOScheduler(timezone=tz_name)
    scheduler.add_job(
        run_job_safely,
        daily_trigger(hour, tz_name, weekdays_only),
        args=[job],
        id=WEATHER_CHECK_JOB_ID,
        name="Daily weather check",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=_MISFIRE_GRACE_SECONDS,
    )
    return scheduler
