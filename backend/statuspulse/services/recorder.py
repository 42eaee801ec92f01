"""Recorder service - appends hits and failures to a service's history.

Every append is a single commit. History rows are never updated; the only
way they disappear is the cascade when their service is deleted.
"""
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import RecordError
from ..models import Failure, Hit, Service
from ..schemas.service import FailureData
from ..utils.db_utils import retry_on_lock
from .checker import Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecorderService:
    """Writes check outcomes to the history store."""

    async def record_hit(self, session: AsyncSession, service_id: int, latency: float) -> Optional[Hit]:
        """Append a hit. Returns None if the service no longer exists."""
        return await self._append(session, service_id, lambda: Hit(service_id=service_id, latency=latency))

    async def record_failure(self, session: AsyncSession, service_id: int, issue: str) -> Optional[Failure]:
        """Append a failure. Returns None if the service no longer exists."""
        return await self._append(session, service_id, lambda: Failure(service_id=service_id, issue=issue))

    async def record_outcome(
        self,
        session: AsyncSession,
        service_id: int,
        status: dict,
        outcome: Outcome,
    ) -> Optional[Hit | Failure]:
        """Store a check's status fields and its hit/failure in one commit.

        If the service was deleted while the probe ran, nothing is written
        and None is returned.
        """

        async def write():
            try:
                result = await session.execute(
                    update(Service)
                    .where(Service.id == service_id)
                    .values(**status)
                )
                if result.rowcount == 0:
                    await session.rollback()
                    logger.info(f"Service {service_id} was deleted during its check, result discarded")
                    return None

                if outcome.success:
                    record = Hit(service_id=service_id, latency=outcome.latency)
                else:
                    record = Failure(service_id=service_id, issue=outcome.issue or "unknown error")
                session.add(record)
                await session.commit()
                return record
            except SQLAlchemyError:
                await session.rollback()
                raise

        return await self._run(session, service_id, write)

    async def _append(self, session: AsyncSession, service_id: int, build: Callable[[], Hit | Failure]):
        async def write():
            record = build()
            session.add(record)
            try:
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                raise
            return record

        return await self._run(session, service_id, write)

    async def _run(self, session: AsyncSession, service_id: int, write: Callable[[], Awaitable[T]]) -> Optional[T]:
        try:
            return await retry_on_lock(write)
        except IntegrityError as e:
            # Foreign key violation: the service went away before the insert
            if not await self._service_exists(session, service_id):
                logger.info(f"Service {service_id} no longer exists, history write discarded")
                return None
            raise RecordError(f"Could not record history for service {service_id}: {e}", service_id=service_id) from e
        except SQLAlchemyError as e:
            logger.error(f"Could not record history for service {service_id}: {e}")
            raise RecordError(f"Could not record history for service {service_id}: {e}", service_id=service_id) from e

    async def _service_exists(self, session: AsyncSession, service_id: int) -> bool:
        result = await session.execute(select(Service.id).where(Service.id == service_id))
        return result.scalar_one_or_none() is not None


# Global instance
recorder_service = RecorderService()


async def create_service_failure(session: AsyncSession, service: Service, data: FailureData) -> Optional[int]:
    """Log an externally detected issue against a service's history.

    Returns the new failure id, or None if the service no longer exists.
    """
    failure = await recorder_service.record_failure(session, service.id, data.issue)
    return failure.id if failure else None
