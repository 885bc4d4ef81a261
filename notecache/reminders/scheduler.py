"""Daily scheduling for reminder jobs."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


def seconds_until(hour: int, minute: int, now: Optional[datetime] = None) -> float:
    """Seconds from ``now`` until the next local ``hour:minute``."""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class ReminderScheduler:
    """Runs reminder jobs once a day at a fixed local time."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.scheduled_jobs: Dict[str, asyncio.Task] = {}
        self.job_times: Dict[str, str] = {}
        self.is_running = False

    async def start(self):
        """Start the reminder scheduler."""
        self.is_running = True
        logger.info("Reminder scheduler started")

    async def stop(self):
        """Stop the reminder scheduler."""
        self.is_running = False

        for job_id, task in self.scheduled_jobs.items():
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self.scheduled_jobs.clear()
        self.job_times.clear()
        logger.info("Reminder scheduler stopped")

    async def schedule_daily(self, name: str, job: Job, hour: int, minute: int = 0):
        """Schedule ``job`` every day at ``hour:minute``."""
        job_id = f"daily_{name}"

        if job_id in self.scheduled_jobs:
            logger.warning(f"Daily job {name} already scheduled")
            return

        self.job_times[job_id] = f"{hour:02d}:{minute:02d}"

        async def run_daily():
            while self.is_running:
                await asyncio.sleep(seconds_until(hour, minute, self.clock()))
                try:
                    await job()
                except Exception as e:
                    logger.error(f"Error in daily job {name}: {e}")

        task = asyncio.create_task(run_daily())
        self.scheduled_jobs[job_id] = task

        logger.info(f"Scheduled daily job {name} at {hour:02d}:{minute:02d}")

    def get_scheduled_jobs(self) -> List[str]:
        """Get list of scheduled job IDs."""
        return list(self.scheduled_jobs.keys())

    def cancel_job(self, job_id: str):
        """Cancel a scheduled job."""
        if job_id in self.scheduled_jobs:
            task = self.scheduled_jobs[job_id]
            if not task.done():
                task.cancel()
            del self.scheduled_jobs[job_id]
            self.job_times.pop(job_id, None)
            logger.info(f"Cancelled job: {job_id}")
        else:
            logger.warning(f"Job not found: {job_id}")

    def get_job_time(self, job_id: str) -> Optional[str]:
        """Get the ``HH:MM`` a job runs at."""
        return self.job_times.get(job_id)
