"""Failure model - failed check history."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Failure(Base):
    """One failed check or externally reported issue."""

    __tablename__ = "failures"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    issue = Column(String, nullable=False)

    # Relationship
    service = relationship("Service", back_populates="failures")
