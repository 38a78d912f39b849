"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from changetracker.api.middleware import RequestContextMiddleware
from changetracker.api.routes import router as api_router
from changetracker.core.auth import get_engine
from changetracker.core.config import settings
from changetracker.core.exceptions import (
    AuthorizationError,
    ChangeTrackerError,
    LocationMismatchError,
    UnknownLocationError,
    UnknownRoleError,
)
from changetracker.core.logging import configure_logging
from changetracker.models.database import close_db

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    # Startup
    configure_logging(settings)
    # Builds and freezes the permission registry before the first request
    get_engine()
    logger.info("app.startup", environment=settings.environment)

    yield

    # Shutdown
    await close_db()
    logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(RequestContextMiddleware)

    # Routes
    app.include_router(api_router, prefix="/api")

    # Exception handlers
    @app.exception_handler(AuthorizationError)
    async def authorization_exception_handler(request: Request, exc: AuthorizationError):
        """Any authorization failure is a plain 403 to the caller."""
        logger.error(
            "authorization.failed",
            error=type(exc).__name__,
            message=str(exc),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": "Permission denied"},
        )

    async def invalid_reference_handler(request: Request, exc: ChangeTrackerError):
        """Ids in a payload that do not exist or do not fit together."""
        logger.info(
            "request.invalid_reference",
            error=type(exc).__name__,
            message=str(exc),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    for exc_class in (UnknownLocationError, LocationMismatchError, UnknownRoleError):
        app.add_exception_handler(exc_class, invalid_reference_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.exception("app.unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "internal_server_error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    @app.get("/health")
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("changetracker.main:app", host="0.0.0.0", port=8000)
