"""
Scheduler manager for automated jobs.

Handles all scheduled tasks:
- Weekly carry-over reconciliation (Monday 00:05 local time by default)
- Outbox delivery to notification adapters (every 30 seconds by default)
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
import pytz

from config import settings
from ..database.connection import get_database
from ..database.repositories.catalogs import CatalogRepository
from ..notifications.dispatcher import OutboxDispatcher
from ..workflow.carry_over import CarryOverReconciler

logger = logging.getLogger(__name__)


class SchedulerManager:
    """
    Manages all scheduled jobs for the phase workflow.
    """

    def __init__(self, dispatcher: Optional[OutboxDispatcher] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.timezone = pytz.timezone(settings.timezone)
        self.dispatcher = dispatcher or OutboxDispatcher()

    def start(self) -> None:
        """Start the scheduler with all jobs."""
        self.scheduler = AsyncIOScheduler(timezone=self.timezone)

        # Carry-over at the start of every week
        self.scheduler.add_job(
            self._carry_over_job,
            CronTrigger(
                day_of_week=settings.reconcile_day[:3].lower(),
                hour=settings.reconcile_hour,
                minute=settings.reconcile_minute,
                timezone=self.timezone
            ),
            id="weekly_carry_over",
            name="Weekly Carry-Over Reconciliation",
            replace_existing=True
        )

        # Outbox delivery
        self.scheduler.add_job(
            self._outbox_dispatch_job,
            IntervalTrigger(seconds=settings.outbox_dispatch_interval_seconds),
            id="outbox_dispatch",
            name="Outbox Dispatch",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        self.scheduler.start()
        logger.info("Scheduler started with all jobs")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self.scheduler:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    async def run_carry_over(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Reconcile every organization with a current phase, one transaction each."""
        database = get_database()
        async with database.session() as session:
            organizations = await CatalogRepository(session).organizations_with_current_phase()

        reports = {}
        for organization_id in organizations:
            try:
                async with database.session() as session:
                    report = await CarryOverReconciler(session).run_cycle(organization_id, now=now)
                reports[organization_id] = report.to_dict()
            except Exception as e:
                logger.error(f"Carry-over failed for {organization_id}: {e}", exc_info=True)
                reports[organization_id] = {"error": str(e)}
        return reports

    async def _carry_over_job(self) -> None:
        """Weekly carry-over for all organizations."""
        logger.info("Running weekly carry-over job")

        try:
            reports = await self.run_carry_over()
            logger.info(f"Carry-over completed for {len(reports)} organization(s)")

        except Exception as e:
            logger.error(f"Error in carry-over job: {e}", exc_info=True)

    async def _outbox_dispatch_job(self) -> None:
        """Deliver pending outbox events."""
        try:
            await self.dispatcher.dispatch_pending()

        except Exception as e:
            logger.error(f"Error in outbox dispatch job: {e}", exc_info=True)

    def trigger_job(self, job_id: str) -> bool:
        """Manually trigger a job."""
        if not self.scheduler:
            return False

        job = self.scheduler.get_job(job_id)
        if job:
            job.modify(next_run_time=datetime.now(self.timezone))
            return True

        return False

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


# Singleton instance
_scheduler_manager: Optional[SchedulerManager] = None


def get_scheduler_manager() -> SchedulerManager:
    """Get the scheduler manager instance."""
    global _scheduler_manager
    if _scheduler_manager is None:
        _scheduler_manager = SchedulerManager()
    return _scheduler_manager
