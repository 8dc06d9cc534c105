"""FastAPI routers for API endpoints."""

from .extract import router as extract_router
from .health import router as health_router

__all__ = [
    "extract_router",
    "health_router",
]
