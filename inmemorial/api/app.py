"""
FastAPI application for the InMemorialOf platform.

This is the HTTP API the frontend talks to.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inmemorial.api import admin, memorials, tributes
from inmemorial.auth import MemorialAccessPolicy
from inmemorial.auth import routes as auth_routes
from inmemorial.config import Settings, get_settings
from inmemorial.core.errors import InMemorialError
from inmemorial.integrations.email import EmailService
from inmemorial.integrations.sentry import capture_exception, init_sentry
from inmemorial.services import MemorialService, TributeService, UserService
from inmemorial.storage import MetadataStorage, create_local_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings

    if init_sentry(settings):
        logger.info("Sentry error tracking enabled")
    if not app.state.email.is_configured:
        logger.warning("Outbound email is not configured; notifications will only be logged")

    logger.info(f"InMemorialOf API starting in {settings.environment} mode")

    yield

    logger.info("InMemorialOf API shutting down")


# =============================================================================
# Error handlers
# =============================================================================


async def handle_app_error(request: Request, exc: InMemorialError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a bug: log it, report it, tell the client nothing."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    capture_exception(exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "server_error"},
    )


# =============================================================================
# App Setup
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: MetadataStorage | None = None,
    email_service: EmailService | None = None,
) -> FastAPI:
    """Build the app. Tests pass their own settings/storage/email."""
    settings = settings or get_settings()
    storage = storage or create_local_storage(settings.data_dir)
    email_service = email_service or EmailService(settings=settings)

    app = FastAPI(
        title="InMemorialOf API",
        description="API for creating and publishing online memorial pages",
        version="0.1.0",
        lifespan=lifespan,
    )

    access = MemorialAccessPolicy()
    users = UserService(storage, email=email_service, settings=settings)
    app.state.settings = settings
    app.state.storage = storage
    app.state.email = email_service
    app.state.access = access
    app.state.users = users
    app.state.memorials = MemorialService(storage, users, access=access, settings=settings)
    app.state.tributes = TributeService(storage, app.state.memorials, access=access)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InMemorialError, handle_app_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(auth_routes.router)
    app.include_router(memorials.router)
    app.include_router(tributes.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "environment": settings.environment}

    return app


app = create_app()
