"""Scheduler package: polling orchestrator and APScheduler lifecycle."""

from tapgen_collector.scheduler.jobs import PollingOrchestrator
from tapgen_collector.scheduler.engine import (
    POLL_JOB_ID,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "PollingOrchestrator",
    "POLL_JOB_ID",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
