"""
Background job that keeps the stations mirror fresh.

The job runs once at startup and then on a fixed interval. Each run goes
through the same read-through path as user requests, so it needs no extra
coordination with them.
"""

import asyncio
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from railfare.services.stations_mirror import StationsMirror

logger = logging.getLogger(__name__)

JOB_ID = "stations_refresh"


class StationsRefreshScheduler:
    """Owns the periodic stations refresh for one mirror."""

    def __init__(self, mirror: StationsMirror, interval_seconds: float):
        self.mirror = mirror
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler()
        self._setup_jobs()

    def _setup_jobs(self):
        self.scheduler.add_job(
            func=self._refresh,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Refresh stations mirror",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    async def start(self):
        """Start the scheduler; the first refresh fires immediately."""
        logger.info(
            "Starting stations refresh scheduler (every %.0fs)", self.interval_seconds
        )
        self.scheduler.start()

    async def stop(self):
        """Stop the scheduler without waiting for a running refresh."""
        if self.scheduler.running:
            logger.info("Stopping stations refresh scheduler")
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler applies the shutdown on the next loop iteration.
            await asyncio.sleep(0)

    async def _refresh(self):
        # StationsMirror.refresh logs and swallows its own failures.
        await self.mirror.refresh()

    def get_job_info(self) -> dict:
        """Get information about scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run.isoformat() if next_run else None,
                    "trigger": str(job.trigger),
                }
            )

        return {
            "scheduler_running": self.scheduler.running,
            "jobs": jobs,
        }
