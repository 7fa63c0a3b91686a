"""Health check routes."""

from fastapi import APIRouter

from statscope.api.deps import RegistryDep
from statscope.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(registry: RegistryDep):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.env,
        "sessions": len(registry),
    }


@router.get("/")
def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
