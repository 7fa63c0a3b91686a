"""API routes."""

from .analysis import router as analysis_router
from .health import router as health_router
from .quality import router as quality_router
from .sessions import router as sessions_router

__all__ = [
    "health_router",
    "sessions_router",
    "quality_router",
    "analysis_router",
]
