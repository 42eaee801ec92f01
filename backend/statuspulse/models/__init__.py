"""Database models."""
from .service import Service
from .hit import Hit
from .failure import Failure

__all__ = ["Service", "Hit", "Failure"]
