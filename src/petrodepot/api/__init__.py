"""
PetroDepot API Module
"""

from petrodepot.api.routes import get_engine, router
from petrodepot.api.schemas import (
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "router",
    "get_engine",
    "HealthResponse",
    "ErrorResponse",
]
