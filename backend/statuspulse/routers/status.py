"""Status overview API for the public status page."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.status import StatusOverview, ServiceSummary
from ..services.registry import select_all_services
from ..services.stats import stats_service

router = APIRouter(prefix="/api/status", tags=["status"])


@router.get("/overview", response_model=StatusOverview)
async def get_status_overview(db: AsyncSession = Depends(get_db)):
    """Get status page overview data."""
    services = await select_all_services(db)

    summaries = []
    for service in services:
        summaries.append(ServiceSummary(
            id=service.id,
            name=service.name,
            type=service.type,
            online=service.online,
            online_24=await stats_service.online_24(db, service),
            avg_uptime=await stats_service.avg_uptime(db, service),
            small_text=await stats_service.small_text(db, service),
        ))

    return StatusOverview(
        total_services=len(services),
        services_online=await stats_service.count_online(db),
        services=summaries,
    )
