"""Tests for the periodic batch runner."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pricewatch.core.exceptions import FatalScrapeError
from pricewatch.scrapers.scheduler import (
    DEALS_REFRESH_JOB_ID,
    PRICES_BATCH_JOB_ID,
    ScraperScheduler,
)


@pytest.fixture
def service():
    service = MagicMock()
    service.run_prices_batch = AsyncMock(return_value={"price_updated": 2})
    service.run_deals_refresh = AsyncMock(return_value={"touched": 1})
    return service


@pytest.fixture
def scheduler(service):
    return ScraperScheduler(MagicMock(), service=service, job_kwargs={"delay_min_ms": 1, "delay_max_ms": 2})


class TestScraperScheduler:

    def test_default_jobs(self, scheduler):
        scheduler.add_default_jobs(prices_interval_minutes=30, deals_interval_minutes=90)

        jobs = {job.id: job for job in scheduler.scheduler.get_jobs()}
        assert set(jobs) == {PRICES_BATCH_JOB_ID, DEALS_REFRESH_JOB_ID}
        assert all(job.max_instances == 1 for job in jobs.values())
        assert jobs[PRICES_BATCH_JOB_ID].trigger.interval.total_seconds() == 30 * 60
        assert jobs[DEALS_REFRESH_JOB_ID].trigger.interval.total_seconds() == 90 * 60
        # Prices batch starts after the deals refresh
        assert jobs[PRICES_BATCH_JOB_ID].next_run_time > jobs[DEALS_REFRESH_JOB_ID].next_run_time

    def test_add_job_replaces_existing(self, scheduler, service):
        scheduler.add_job(PRICES_BATCH_JOB_ID, service.run_prices_batch, interval_minutes=10)
        scheduler.add_job(PRICES_BATCH_JOB_ID, service.run_prices_batch, interval_minutes=20)

        status = scheduler.get_jobs_status()
        assert list(status) == [PRICES_BATCH_JOB_ID]
        assert status[PRICES_BATCH_JOB_ID]["next_run"] is not None

    async def test_wrapper_passes_job_kwargs(self, scheduler, service):
        await scheduler._run_job_wrapper(PRICES_BATCH_JOB_ID, service.run_prices_batch)

        service.run_prices_batch.assert_awaited_once_with(delay_min_ms=1, delay_max_ms=2)

    async def test_wrapper_contains_fatal_errors(self, scheduler, service):
        service.run_deals_refresh.side_effect = FatalScrapeError("nacional", "backend_503")

        # Must not raise, the scheduler keeps running
        await scheduler._run_job_wrapper(DEALS_REFRESH_JOB_ID, service.run_deals_refresh)

        service.run_deals_refresh.assert_awaited_once()

    async def test_wrapper_contains_unexpected_errors(self, scheduler, service):
        service.run_prices_batch.side_effect = RuntimeError("database went away")

        await scheduler._run_job_wrapper(PRICES_BATCH_JOB_ID, service.run_prices_batch)

    async def test_start_and_stop(self, scheduler):
        scheduler.start()
        assert scheduler.is_running()

        scheduler.stop()
        assert not scheduler.is_running()
