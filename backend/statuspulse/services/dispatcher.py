"""Check dispatcher - runs a probe for a service and records what it saw."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import RecordError
from ..models import Service
from ..schemas.service import ServiceResponse
from .checker import CheckerService, checker_service
from .recorder import RecorderService, recorder_service

logger = logging.getLogger(__name__)


class DispatcherService:
    """Runs the probe matching a service's type and routes the outcome."""

    def __init__(self, checker: CheckerService = checker_service, recorder: RecorderService = recorder_service):
        self.checker = checker
        self.recorder = recorder

    async def check(self, session: AsyncSession, service: Service) -> ServiceResponse:
        """Check one service now and return its updated snapshot.

        Probe problems never raise; they are recorded as failures. A
        RecordError is raised if history could not be written, carrying the
        snapshot so the observed status is not lost.
        """
        outcome = await self.checker.probe(service)

        status = {"online": outcome.success, "latency": outcome.latency}
        if service.type == "http":
            status["last_status_code"] = outcome.status_code

        snapshot = ServiceResponse.model_validate(service).model_copy(update=status)

        if outcome.success:
            logger.debug(f"Service {service.name} online ({outcome.latency * 1000:.0f}ms)")
        else:
            logger.info(f"Service {service.name} offline: {outcome.issue}")

        try:
            await self.recorder.record_outcome(session, snapshot.id, status, outcome)
        except RecordError as e:
            e.service = snapshot
            raise

        return snapshot


# Global instance
dispatcher_service = DispatcherService()


async def check_service(session: AsyncSession, service: Service) -> ServiceResponse:
    """Check one service now. Entry point for the scheduler and the API."""
    return await dispatcher_service.check(session, service)
