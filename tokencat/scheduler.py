"""
Scheduler running :class:`tokencat.tokens.BulkRefreshJob` using APScheduler.
"""
import logging
from datetime import datetime
from typing import Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tokencat import config
from tokencat.tokens.bulk import BulkRefreshJob

logger = logging.getLogger(__name__)

BULK_REFRESH_JOB_ID = "bulk_refresh"

# Global scheduler instance
_scheduler: Optional[BackgroundScheduler] = None


def get_scheduler() -> BackgroundScheduler:
    """
    Get or create the global scheduler instance

    Returns:
        An instance of :class:`BackgroundScheduler`
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = BackgroundScheduler()
    return _scheduler


def schedule_bulk_refresh(
    scheduler: BackgroundScheduler,
    job: BulkRefreshJob,
    interval: int = config.BULK_INTERVAL,
):
    """
    Add the bulk refresh job to a scheduler. The first run starts immediately.

    ``max_instances=1`` makes APScheduler skip a tick while the previous run
    is still executing; the job guards itself the same way.

    Args:
        scheduler: scheduler to add the job to
        job: bulk refresh job
        interval: seconds between runs
    """
    scheduler.add_job(
        job.tick,
        trigger=IntervalTrigger(seconds=interval),
        id=BULK_REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(),
    )
    logger.info(f"Scheduled bulk refresh every {interval}s")


def start_scheduler(job: BulkRefreshJob, interval: int = config.BULK_INTERVAL):
    """
    Start the global scheduler with the bulk refresh job.
    Does nothing if the scheduler is already running.

    Args:
        job: bulk refresh job
        interval: seconds between runs
    """
    scheduler = get_scheduler()
    if not scheduler.running:
        schedule_bulk_refresh(scheduler, job, interval)
        scheduler.start()
        logger.info("Scheduler started")
    else:
        logger.debug("Scheduler already running")


def stop_scheduler():
    """
    Stop the global scheduler without waiting for a running job.
    The next :func:`get_scheduler` call creates a new instance.
    """
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    _scheduler = None
