"""NUDGE — Scheduler Jobs.

APScheduler daily job that runs one battery reminder campaign at the
configured hour.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from nudge.config import settings
from nudge.database import Database
from nudge.jobs.run_campaign import run_once
from nudge.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def daily_campaign_job(db: Database):
    """Run one campaign; failures are logged, the scheduler keeps going."""
    logger.info("Scheduled battery reminder campaign starting...")
    try:
        result = await run_once(db)
        logger.info(
            f"Scheduled campaign complete: {result.total_sent} sent, {result.total_failed} failed",
            extra={"campaign_id": result.campaign_id},
        )
    except Exception as e:
        logger.error(f"Scheduled campaign failed: {e}")


def start_scheduler(db: Database):
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_campaign_job,
        "cron",
        hour=settings.campaign_hour,
        minute=0,
        args=[db],
        id="daily_battery_campaign",
        replace_existing=True,
        misfire_grace_time=3600,
        max_instances=1,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily campaign at {settings.campaign_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
