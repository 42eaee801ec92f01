"""Service model - endpoints being monitored."""
from datetime import datetime
from sqlalchemy import Column, Integer, Float, String, DateTime, Boolean
from sqlalchemy.orm import relationship

from ..database import Base


class Service(Base):
    """A monitored endpoint - HTTP or TCP check."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    domain = Column(String, nullable=False)  # URL for http, host for tcp
    port = Column(Integer, nullable=True)  # tcp only
    type = Column(String, nullable=False, default="http")  # http, tcp
    method = Column(String, nullable=False, default="GET")
    expected_status = Column(Integer, nullable=False, default=200)
    expected = Column(String, nullable=True)  # Regex the response body must match
    post_data = Column(String, nullable=True)
    interval = Column(Integer, nullable=False, default=60)  # seconds
    timeout = Column(Integer, nullable=False, default=20)  # seconds
    created_at = Column(DateTime, default=datetime.utcnow)

    # Last observed state, written by the check dispatcher only
    online = Column(Boolean, nullable=False, default=False)
    last_status_code = Column(Integer, nullable=True)
    latency = Column(Float, nullable=False, default=0.0)  # seconds

    # Relationships
    hits = relationship(
        "Hit", back_populates="service", cascade="all, delete-orphan", passive_deletes=True
    )
    failures = relationship(
        "Failure", back_populates="service", cascade="all, delete-orphan", passive_deletes=True
    )
