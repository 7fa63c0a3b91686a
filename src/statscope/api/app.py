"""FastAPI application factory."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from statscope.api.deps import get_registry
from statscope.config import settings
from statscope.core.exceptions import install_exception_handlers
from statscope.core.logging import bind_context, clear_context, get_logger, setup_logging

# Initialize logging early
setup_logging(
    level="DEBUG" if settings.debug else settings.log_level,
    json_format=settings.json_logs or settings.is_production(),
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info(
        "Starting StatScope",
        version=settings.app_version,
        env=settings.env,
        operation_timeout=settings.operation_timeout_seconds,
    )

    yield

    logger.info("Shutting down StatScope", sessions=len(get_registry()))
    get_registry().clear()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Guided exploratory statistics: cleaning, outliers, distributions, correlations",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Exception handlers
    install_exception_handlers(app, include_trace=settings.debug)

    # Middleware (order matters - last added is first executed)
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request context middleware for structured logging
    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])

        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    # Include routers
    from statscope.api.routes import (
        analysis_router,
        health_router,
        quality_router,
        sessions_router,
    )

    app.include_router(health_router)
    app.include_router(sessions_router, prefix=settings.api_prefix)
    app.include_router(quality_router, prefix=settings.api_prefix)
    app.include_router(analysis_router, prefix=settings.api_prefix)

    return app


# Application instance
app = create_app()
