"""Service registry - CRUD over monitored services."""
import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Service
from ..schemas.service import ServiceCreate, ServiceUpdate
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


async def select_service(session: AsyncSession, service_id: int) -> Optional[Service]:
    """Get a service by id, or None."""
    result = await session.execute(select(Service).where(Service.id == service_id))
    return result.scalar_one_or_none()


async def select_all_services(session: AsyncSession) -> List[Service]:
    """All services in creation order."""
    result = await session.execute(select(Service).order_by(Service.id))
    return list(result.scalars().all())


async def create_service(session: AsyncSession, data: ServiceCreate) -> int:
    """Create a service and return its id."""
    service = Service(**data.model_dump())
    session.add(service)
    await retry_on_lock(session.commit)
    logger.info(f"Created service {service.id} ({service.name})")
    return service.id


async def update_service(session: AsyncSession, service: Service, data: ServiceUpdate) -> Service:
    """Apply config changes to a service.

    Only configuration fields can change here; the last observed state
    belongs to the check dispatcher.
    """
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(service, key, value)
    await retry_on_lock(session.commit)
    await session.refresh(service)
    return service


async def delete_service(session: AsyncSession, service: Service) -> None:
    """Delete a service. Its hits and failures go with it."""
    logger.info(f"Deleting service {service.id} ({service.name})")
    # Bulk delete lets ON DELETE CASCADE remove the history in the database
    await session.execute(delete(Service).where(Service.id == service.id))
    await retry_on_lock(session.commit)
