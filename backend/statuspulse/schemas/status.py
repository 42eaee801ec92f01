"""Status overview schemas for the public status view."""
from datetime import datetime
from typing import List
from pydantic import BaseModel


class GraphPoint(BaseModel):
    """Average latency for one hour."""
    x: datetime
    y: int  # milliseconds


class ServiceStats(BaseModel):
    """Aggregated statistics for one service."""
    service_id: int
    total_hits: int
    total_failures: int
    sum: float  # seconds
    avg_time: int  # milliseconds
    online_24: float  # Percentage
    avg_uptime: str  # Percentage
    small_text: str
    downtime_seconds: int


class ServiceSummary(BaseModel):
    """Summary of a service for the status page."""
    id: int
    name: str
    type: str
    online: bool
    online_24: float
    avg_uptime: str
    small_text: str


class StatusOverview(BaseModel):
    """Status page overview data."""
    total_services: int
    services_online: int
    services: List[ServiceSummary]
