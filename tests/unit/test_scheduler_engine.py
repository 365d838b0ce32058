"""
Unit tests for the APScheduler engine.

Run with: pytest tests/unit/test_scheduler_engine.py -v
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tapgen_collector.scheduler import engine
from tapgen_collector.scheduler.engine import (
    POLL_JOB_ID,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)


@pytest.fixture
def orchestrator():
    orchestrator = MagicMock()
    orchestrator.run_tick = AsyncMock(return_value={})
    return orchestrator


@pytest.mark.asyncio
async def test_disabled_scheduler_does_not_start(test_settings, orchestrator):
    assert await start_scheduler(orchestrator, test_settings) is None
    assert get_scheduler() is None


@pytest.mark.asyncio
async def test_poll_job_registered(test_settings, orchestrator):
    settings = test_settings.model_copy(
        update={"scheduler_enabled": True, "poll_interval_ms": 2500, "scheduler_max_instances": 3}
    )
    try:
        scheduler = await start_scheduler(orchestrator, settings)
        assert scheduler is not None and scheduler.running

        job = scheduler.get_job(POLL_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 2.5
        assert job.max_instances == 3
        assert job.coalesce is True

        # a second start keeps the running instance
        assert await start_scheduler(orchestrator, settings) is scheduler
    finally:
        await stop_scheduler()

    assert get_scheduler() is None


@pytest.mark.asyncio
async def test_wrapped_job_logs_and_swallows_errors(caplog):
    failing = AsyncMock(side_effect=RuntimeError("tick exploded"))
    wrapped = engine._wrap_job(failing, "modbus_poll")

    await wrapped()

    failing.assert_awaited_once()
    assert "tick exploded" in caplog.text


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    await stop_scheduler()
    assert get_scheduler() is None
