"""Service CRUD, check, and history API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..errors import RecordError
from ..models import Service
from ..schemas.service import (
    ServiceCreate,
    ServiceUpdate,
    ServiceResponse,
    FailureData,
    HitResponse,
    FailureResponse,
)
from ..schemas.status import GraphPoint, ServiceStats
from ..services import registry
from ..services.dispatcher import check_service
from ..services.recorder import create_service_failure
from ..services.stats import stats_service

router = APIRouter(prefix="/api/services", tags=["services"])


async def _get_service_or_404(db: AsyncSession, service_id: int) -> Service:
    service = await registry.select_service(db, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


@router.get("", response_model=List[ServiceResponse])
async def list_services(db: AsyncSession = Depends(get_db)):
    """List all services with their last observed state."""
    return await registry.select_all_services(db)


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(data: ServiceCreate, db: AsyncSession = Depends(get_db)):
    """Create a new service."""
    if data.type == "tcp" and not data.port:
        raise HTTPException(status_code=422, detail="TCP services need a port")
    service_id = await registry.create_service(db, data)
    return await _get_service_or_404(db, service_id)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, db: AsyncSession = Depends(get_db)):
    """Get a specific service by ID."""
    return await _get_service_or_404(db, service_id)


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(service_id: int, update: ServiceUpdate, db: AsyncSession = Depends(get_db)):
    """Update a service's configuration."""
    service = await _get_service_or_404(db, service_id)
    return await registry.update_service(db, service, update)


@router.delete("/{service_id}", status_code=204)
async def delete_service(service_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a service and its history."""
    service = await _get_service_or_404(db, service_id)
    await registry.delete_service(db, service)


@router.post("/{service_id}/check", response_model=ServiceResponse)
async def run_check(service_id: int, db: AsyncSession = Depends(get_db)):
    """Check a service now and return its updated state."""
    service = await _get_service_or_404(db, service_id)
    try:
        return await check_service(db, service)
    except RecordError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/{service_id}/hits", response_model=List[HitResponse])
async def list_hits(
    service_id: int,
    limit: int = Query(default=100, ge=1, le=10000),
    db: AsyncSession = Depends(get_db),
):
    """Most recent hits, newest first."""
    service = await _get_service_or_404(db, service_id)
    return await stats_service.limited_hits(db, service, limit=limit)


@router.get("/{service_id}/failures", response_model=List[FailureResponse])
async def list_failures(
    service_id: int,
    limit: int = Query(default=10, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """Most recent failures, newest first."""
    service = await _get_service_or_404(db, service_id)
    return await stats_service.limited_failures(db, service, limit=limit)


@router.post("/{service_id}/failures", status_code=201)
async def report_failure(service_id: int, data: FailureData, db: AsyncSession = Depends(get_db)):
    """Log an externally detected issue against a service."""
    service = await _get_service_or_404(db, service_id)
    try:
        failure_id = await create_service_failure(db, service, data)
    except RecordError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if failure_id is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return {"id": failure_id}


@router.get("/{service_id}/stats", response_model=ServiceStats)
async def get_stats(service_id: int, db: AsyncSession = Depends(get_db)):
    """Uptime and latency statistics for a service."""
    service = await _get_service_or_404(db, service_id)
    downtime = await stats_service.downtime(db, service)
    return ServiceStats(
        service_id=service.id,
        total_hits=await stats_service.total_hits(db, service),
        total_failures=await stats_service.total_failures(db, service),
        sum=await stats_service.sum(db, service),
        avg_time=await stats_service.avg_time(db, service),
        online_24=await stats_service.online_24(db, service),
        avg_uptime=await stats_service.avg_uptime(db, service),
        small_text=await stats_service.small_text(db, service),
        downtime_seconds=int(downtime.total_seconds()),
    )


@router.get("/{service_id}/graph", response_model=List[GraphPoint])
async def get_graph(service_id: int, db: AsyncSession = Depends(get_db)):
    """Hourly average latency over the trailing window."""
    service = await _get_service_or_404(db, service_id)
    return await stats_service.graph_data(db, service)
