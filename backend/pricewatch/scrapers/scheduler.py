"""APScheduler-based periodic runner.

Runs the two batch jobs (stale prices batch, today's deals refresh) at
configurable intervals inside one asyncio event loop.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricewatch.config import settings
from pricewatch.core.exceptions import FatalScrapeError
from pricewatch.scrapers.scraper_service import ScraperService

logger = structlog.get_logger(__name__)


PRICES_BATCH_JOB_ID = "prices_batch"
DEALS_REFRESH_JOB_ID = "deals_refresh"


class ScraperScheduler:
    """Manages the periodic batch jobs using APScheduler.

    This scheduler:
    - Starts and stops the background jobs
    - Never runs two instances of the same job at once
    - Logs job failures without stopping the scheduler
    """

    def __init__(
        self,
        db_session_factory: async_sessionmaker[AsyncSession],
        service: Optional[ScraperService] = None,
        job_kwargs: Optional[Dict[str, Any]] = None,
    ):
        """Initialize scraper scheduler.

        Args:
            db_session_factory: Async session factory for database access
            service: Batch job service (built from the factory if None)
            job_kwargs: Extra keyword arguments passed to both jobs (delays, FetchConfig)
        """
        self.service = service or ScraperService(db_session_factory)
        self.job_kwargs = job_kwargs or {}
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.logger = logger.bind(service="scraper_scheduler")

    def start(self) -> None:
        """Start the scheduler (jobs must be added separately)."""
        if not self.scheduler.running:
            self.scheduler.start()
            self.logger.info("scheduler_started")
        else:
            self.logger.warning("scheduler_already_running")

    def stop(self) -> None:
        """Stop the scheduler, waiting for running jobs to finish."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            self.logger.info("scheduler_stopped")
        else:
            self.logger.warning("scheduler_not_running")

    def add_default_jobs(
        self,
        prices_interval_minutes: Optional[int] = None,
        deals_interval_minutes: Optional[int] = None,
    ) -> None:
        """Schedule both batch jobs at their configured intervals.

        The deals refresh runs first; the prices batch is offset by one
        minute so the two do not start together.
        """
        self.add_job(
            DEALS_REFRESH_JOB_ID,
            self.service.run_deals_refresh,
            interval_minutes=deals_interval_minutes or settings.DEALS_REFRESH_INTERVAL_MINUTES,
        )
        self.add_job(
            PRICES_BATCH_JOB_ID,
            self.service.run_prices_batch,
            interval_minutes=prices_interval_minutes or settings.PRICES_BATCH_INTERVAL_MINUTES,
            offset_seconds=60,
        )

    def add_job(
        self,
        job_id: str,
        func: Callable[..., Awaitable[Dict[str, int]]],
        interval_minutes: int,
        offset_seconds: int = 0,
    ) -> Job:
        """Add (or replace) a periodic job.

        Args:
            job_id: Scheduler job id
            func: Batch coroutine function to run
            interval_minutes: How often to run the job
            offset_seconds: Delay before the first run

        Returns:
            APScheduler Job instance
        """
        trigger = IntervalTrigger(
            minutes=interval_minutes,
            start_date=datetime.now(timezone.utc),
            timezone="UTC",
        )

        job = self.scheduler.add_job(
            func=self._run_job_wrapper,
            trigger=trigger,
            args=[job_id, func],
            id=job_id,
            name=job_id.replace("_", " ").title(),
            replace_existing=True,
            max_instances=1,  # Never overlap runs of the same job
            next_run_time=datetime.now(timezone.utc) + timedelta(seconds=offset_seconds),
        )

        self.logger.info(
            "job_added",
            job_id=job_id,
            interval_minutes=interval_minutes,
            offset_seconds=offset_seconds,
        )
        return job

    async def _run_job_wrapper(self, job_id: str, func: Callable[..., Awaitable[Dict[str, int]]]) -> None:
        """Run a batch job, logging failures so the scheduler keeps going."""
        self.logger.info("job_started", job_id=job_id)
        try:
            stats = await func(**self.job_kwargs)
        except FatalScrapeError as e:
            self.logger.error("job_aborted", job_id=job_id, shop=e.shop_name, reason=e.reason)
            return
        except Exception as e:
            self.logger.error("job_failed", job_id=job_id, error=str(e), exc_info=True)
            return

        self.logger.info("job_completed", job_id=job_id, **stats)

    def get_jobs_status(self) -> dict:
        """Get status of all scheduled jobs, keyed by job id."""
        jobs = {}
        for job in self.scheduler.get_jobs():
            jobs[job.id] = {
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            }
        return jobs

    def is_running(self) -> bool:
        return self.scheduler.running
