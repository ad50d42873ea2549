"""
APScheduler Configuration

Background job scheduler started from the application lifespan when
SCHEDULER_ENABLED is set. Jobs run in the API process event loop.
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor

from app.config import settings

logger = logging.getLogger(__name__)

# Job stores
jobstores = {
    'default': MemoryJobStore()
}

# Executors
executors = {
    'default': AsyncIOExecutor(),
}

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one instance of each job at a time
    'misfire_grace_time': 60,
}

scheduler = AsyncIOScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
    timezone=settings.SCHEDULER_TIMEZONE,
)


async def run_job(job_name: str):
    """
    Wrapper called by APScheduler. Failures are logged so one bad run does
    not unschedule the job.
    """
    from app.jobs import profit_jobs

    job = getattr(profit_jobs, job_name)
    try:
        result = await job()
        logger.info(f"Job '{job_name}' completed: {result}")
    except Exception as e:
        logger.error(f"Job '{job_name}' failed: {e}")


def register_jobs():
    """Add every scheduled job. Safe to call more than once."""
    # Pending jobs added before start() are not deduplicated by replace_existing
    if scheduler.get_job('generate_missing_profit_reports') is not None:
        return

    # Profit reports for delivered orders
    scheduler.add_job(
        run_job,
        'interval',
        minutes=settings.PROFIT_REPORT_JOB_INTERVAL_MINUTES,
        args=['generate_missing_profit_reports'],
        id='generate_missing_profit_reports',
        name='Generate Missing Profit Reports',
        replace_existing=True,
    )


def start_scheduler():
    """Start the background job scheduler."""
    if not scheduler.running:
        register_jobs()
        scheduler.start()
        logger.info("Background job scheduler started")

        for job in scheduler.get_jobs():
            logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background job scheduler stopped")

