"""Polling scheduler: one APScheduler interval job driving the orchestrator."""

from datetime import datetime, timezone
from typing import Optional, Callable, Any, Awaitable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tapgen_collector.config import Settings, get_settings
from tapgen_collector.logger import get_logger
from tapgen_collector.scheduler.jobs import PollingOrchestrator

logger = get_logger(__name__)

POLL_JOB_ID = "modbus_poll"

# Process-wide scheduler, None while stopped
_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> Optional[AsyncIOScheduler]:
    """The running scheduler, or None."""
    return _scheduler


async def start_scheduler(
    orchestrator: PollingOrchestrator,
    settings: Optional[Settings] = None
) -> Optional[AsyncIOScheduler]:
    """
    Initialize and start the APScheduler with the polling job.

    Only starts if the scheduler is enabled in settings.
    """
    global _scheduler
    settings = settings or get_settings()

    if not settings.scheduler_enabled:
        logger.info("Polling scheduler disabled by settings, no ticks will run")
        return None

    if _scheduler is not None:
        logger.warning("Polling scheduler already running")
        return _scheduler

    try:
        _scheduler = AsyncIOScheduler(timezone=timezone.utc)
        _scheduler.start()
        logger.info("Polling scheduler started")

        register_jobs(orchestrator, settings)

    except Exception as e:
        logger.error(f"Could not start polling scheduler: {e}", exc_info=True)
        _scheduler = None

    return _scheduler


async def stop_scheduler() -> None:
    """
    Stop the APScheduler.
    """
    global _scheduler

    if _scheduler is None:
        return

    try:
        _scheduler.shutdown(wait=False)
        logger.info("Polling scheduler stopped")
    except Exception as e:
        logger.error(f"Error shutting down polling scheduler: {e}", exc_info=True)
    finally:
        _scheduler = None


def _wrap_job(job_func: Callable[[], Awaitable[Any]], job_id: str) -> Callable[[], Awaitable[None]]:
    """
    Wrap a job so that an exception is logged and the next run proceeds on schedule.

    Args:
        job_func: Coroutine function to guard
        job_id: Id used in the error log

    Returns:
        Async function that APScheduler can invoke
    """
    async def wrapped_job():
        try:
            await job_func()
        except Exception as e:
            logger.error(f"Job {job_id} raised, next run stays scheduled: {e}", exc_info=True)

    return wrapped_job


def add_job(
    job_func: Callable[[], Awaitable[Any]],
    trigger: Any,
    job_id: str,
    name: Optional[str] = None,
    **kwargs
) -> None:
    """
    Add a job to the scheduler with error wrapping.

    Args:
        job_func: Coroutine function run on each trigger
        trigger: APScheduler trigger
        job_id: Job id, replaces an existing job with the same id
        name: Display name, defaults to job_id
        **kwargs: Passed through to AsyncIOScheduler.add_job
    """
    if _scheduler is None:
        logger.warning(f"Job {job_id} not registered: scheduler is not running")
        return

    _scheduler.add_job(
        _wrap_job(job_func, job_id),
        trigger=trigger,
        id=job_id,
        name=name or job_id,
        replace_existing=True,
        **kwargs
    )
    logger.info(f"Scheduled job {job_id} ({name or job_id}) with trigger {trigger}")


def register_jobs(orchestrator: PollingOrchestrator, settings: Settings) -> None:
    """
    Register the Modbus polling job.

    Overlapping ticks are allowed up to `scheduler_max_instances`; the
    orchestrator skips any device whose previous read is still running.
    """
    add_job(
        job_func=orchestrator.run_tick,
        trigger=IntervalTrigger(seconds=settings.poll_interval_ms / 1000.0),
        job_id=POLL_JOB_ID,
        name="Modbus Register Polling",
        max_instances=settings.scheduler_max_instances,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
    )
