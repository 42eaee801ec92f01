"""Pydantic schemas for API request/response models."""
from .service import (
    ServiceCreate,
    ServiceUpdate,
    ServiceResponse,
    FailureData,
    HitResponse,
    FailureResponse,
)
from .status import (
    GraphPoint,
    ServiceStats,
    ServiceSummary,
    StatusOverview,
)

__all__ = [
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceResponse",
    "FailureData",
    "HitResponse",
    "FailureResponse",
    "GraphPoint",
    "ServiceStats",
    "ServiceSummary",
    "StatusOverview",
]
