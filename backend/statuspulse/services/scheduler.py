"""Scheduler service - runs each service's check on its own interval.

Design:
- Scheduler ticks every few seconds and picks the services whose interval
  has elapsed since their last dispatch
- Each check runs in its own session so one slow probe never holds up another
- A service is never checked twice at the same time
- Checks run as background tasks; a tick only dispatches and returns
- Concurrent checks are bounded to keep the database and sockets sane
"""
import asyncio
import logging
from datetime import datetime
from typing import Dict, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..database import async_session
from ..errors import RecordError
from ..models import Service
from .dispatcher import check_service

logger = logging.getLogger(__name__)


class SchedulerService:
    """Service for scheduling and running periodic checks."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session):
        self.session_factory = session_factory
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._last_run: Dict[int, datetime] = {}
        self._in_flight: Set[int] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.run_due_checks,
            trigger=IntervalTrigger(seconds=settings.scheduler_tick_seconds),
            id="run_checks",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=settings.scheduler_tick_seconds,
        )
        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (tick={settings.scheduler_tick_seconds}s, "
            f"max_concurrent={settings.max_concurrent_checks})"
        )

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            for task in list(self._tasks):
                task.cancel()
            self._running = False
            logger.info("Scheduler stopped")

    def is_due(self, service_id: int, interval: int, now: Optional[datetime] = None) -> bool:
        """Whether a service's interval has elapsed since it was last dispatched."""
        if service_id in self._in_flight:
            return False
        last_run = self._last_run.get(service_id)
        # Never checked - check immediately
        if last_run is None:
            return True
        now = now or datetime.utcnow()
        return (now - last_run).total_seconds() >= interval

    async def run_due_checks(self):
        """Run checks for services that are due."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Service.id, Service.interval))
                rows = result.all()

            now = datetime.utcnow()
            known = {service_id for service_id, _ in rows}
            # Forget services deleted since the last tick
            for service_id in list(self._last_run):
                if service_id not in known:
                    del self._last_run[service_id]

            due = [service_id for service_id, interval in rows if self.is_due(service_id, interval, now)]
            if not due:
                return

            logger.debug(f"Checking {len(due)} due services out of {len(rows)} total")

            for service_id in due:
                self._last_run[service_id] = now
                self._in_flight.add(service_id)

            if self._semaphore is None:
                self._semaphore = asyncio.Semaphore(settings.max_concurrent_checks)

            for service_id in due:
                task = asyncio.create_task(self._check_with_limit(service_id))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

        except Exception as e:
            logger.error(f"Error running checks: {e}")

    async def wait_for_checks(self):
        """Wait until every dispatched check has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _check_with_limit(self, service_id: int):
        try:
            async with self._semaphore:
                await self.check_single_service(service_id)
        finally:
            self._in_flight.discard(service_id)

    async def check_single_service(self, service_id: int):
        """Check a single service in its own session."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Service).where(Service.id == service_id))
                service = result.scalar_one_or_none()
                if service:
                    await check_service(session, service)
        except RecordError as e:
            logger.error(f"Check of service {service_id} ran but was not recorded: {e}")
        except Exception as e:
            logger.error(f"Error checking service {service_id}: {e}")


# Global instance
scheduler_service = SchedulerService()
