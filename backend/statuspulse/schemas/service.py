"""Service schemas for API."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ServiceCreate(BaseModel):
    """Schema for creating a new service."""
    name: str = Field(..., min_length=1, max_length=255)
    domain: str = Field(..., min_length=1)
    type: str = Field(default="http", pattern="^(http|tcp)$")
    port: Optional[int] = Field(None, ge=1, le=65535)
    method: str = Field(default="GET", pattern="^(GET|HEAD|POST|PUT|PATCH|DELETE|OPTIONS)$")
    expected_status: int = Field(default=200, ge=100, le=599)
    expected: Optional[str] = None  # Regex matched against the response body
    post_data: Optional[str] = None
    interval: int = Field(default=60, ge=1, le=86400)
    timeout: int = Field(default=20, ge=1, le=300)


class ServiceUpdate(BaseModel):
    """Schema for updating a service."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    domain: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = Field(None, pattern="^(http|tcp)$")
    port: Optional[int] = Field(None, ge=1, le=65535)
    method: Optional[str] = Field(None, pattern="^(GET|HEAD|POST|PUT|PATCH|DELETE|OPTIONS)$")
    expected_status: Optional[int] = Field(None, ge=100, le=599)
    expected: Optional[str] = None
    post_data: Optional[str] = None
    interval: Optional[int] = Field(None, ge=1, le=86400)
    timeout: Optional[int] = Field(None, ge=1, le=300)

    @field_validator("name", "domain", "type", "method", "expected_status", "interval", "timeout")
    @classmethod
    def not_null(cls, v):
        # May be omitted, but the stored columns cannot be cleared
        if v is None:
            raise ValueError("may not be null")
        return v


class ServiceResponse(BaseModel):
    """Service snapshot - config plus last observed state."""
    id: int
    name: str
    domain: str
    type: str
    port: Optional[int] = None
    method: str
    expected_status: int
    expected: Optional[str] = None
    post_data: Optional[str] = None
    interval: int
    timeout: int
    created_at: Optional[datetime] = None
    online: bool
    last_status_code: Optional[int] = None
    latency: float

    class Config:
        from_attributes = True


class FailureData(BaseModel):
    """Externally reported issue for a service."""
    issue: str = Field(..., min_length=1)


class HitResponse(BaseModel):
    """Successful check record."""
    id: int
    service_id: int
    created_at: datetime
    latency: float

    class Config:
        from_attributes = True


class FailureResponse(BaseModel):
    """Failed check record."""
    id: int
    service_id: int
    created_at: datetime
    issue: str

    class Config:
        from_attributes = True
