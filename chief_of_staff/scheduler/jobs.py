"""
Scheduler manager for automated jobs.

Handles:
- Draining due delayed workflow actions (queue mode only)
- Refreshing staff reliability scores and active task counts
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import pytz

from config import settings
from ..repositories.staff import StaffRepository
from ..workflows.engine import WorkflowEngine

logger = logging.getLogger(__name__)


class SchedulerManager:
    """
    Manages the engine's periodic jobs.
    """

    def __init__(self, engine: WorkflowEngine, staff: StaffRepository):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.timezone = pytz.timezone(settings.timezone)
        self.engine = engine
        self.staff = staff

    def start(self) -> None:
        """Start the scheduler with all jobs."""
        self.scheduler = AsyncIOScheduler(timezone=self.timezone)

        if self.engine.delayed_action_mode == "queue":
            self.scheduler.add_job(
                self._delayed_actions_job,
                IntervalTrigger(minutes=settings.delayed_action_poll_minutes),
                id="delayed_actions",
                name="Run Due Delayed Actions",
                replace_existing=True
            )

        self.scheduler.add_job(
            self._staff_metrics_job,
            IntervalTrigger(hours=settings.reliability_update_interval_hours),
            id="staff_metrics",
            name="Refresh Staff Metrics",
            replace_existing=True
        )

        self.scheduler.start()
        logger.info(f"Scheduler started with {len(self.scheduler.get_jobs())} job(s)")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    async def _delayed_actions_job(self) -> None:
        """Run queued workflow actions whose delay has passed."""
        logger.debug("Running delayed actions check")

        try:
            count = await self.engine.run_due_actions()
            if count:
                logger.info(f"Ran {count} delayed action(s)")

        except Exception as e:
            logger.error(f"Error in delayed actions job: {e}")

    async def _staff_metrics_job(self) -> None:
        """Recompute reliability scores and active task counts."""
        logger.info("Running staff metrics job")

        try:
            count = await self.staff.refresh_metrics()
            logger.info(f"Refreshed metrics for {count} staff member(s)")

        except Exception as e:
            logger.error(f"Error in staff metrics job: {e}")

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs."""
        if not self.scheduler:
            return {}

        jobs = {}
        for job in self.scheduler.get_jobs():
            jobs[job.id] = {
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            }

        return jobs
