"""Hit model - successful check history."""
from datetime import datetime
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Hit(Base):
    """One successful check. Rows are never updated."""

    __tablename__ = "hits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    latency = Column(Float, nullable=False)  # seconds

    # Relationship
    service = relationship("Service", back_populates="hits")
