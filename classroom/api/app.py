# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the Classroom API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classroom import __version__
from classroom.api.routes import health
from classroom.api.v1 import router as v1_router
from classroom.core.config import get_settings
from classroom.core.exceptions import (
    ClassroomError,
    DuplicateError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from classroom.infrastructure.database.connection import close_database, init_database
from classroom.utils.logging import bind_context, clear_context, setup_logging

logger = logging.getLogger(__name__)

# Most specific first; the first matching class wins
ERROR_STATUS_CODES: list[tuple[type[ClassroomError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_code_for(error: ClassroomError) -> int:
    """Map a domain error to its HTTP status code."""
    for error_cls, code in ERROR_STATUS_CODES:
        if isinstance(error, error_cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def classroom_error_handler(request: Request, exc: ClassroomError) -> JSONResponse:
    """Render a domain error as a JSON response."""
    code = status_code_for(exc)

    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, str(exc))
    else:
        logger.info(
            "%s %s rejected (%d): %s", request.method, request.url.path, code, exc.message
        )

    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging and opens the database pool on startup; closes the
    pool on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info("Starting Classroom API (%s)", settings.environment)

    # =========================================================================
    # Startup
    # =========================================================================
    try:
        await init_database(settings)
    except Exception as e:
        logger.warning("Failed to initialize database connection: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    try:
        await close_database()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down Classroom API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api.title,
        description="School structure, rosters, coursework and attendance",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(ClassroomError, classroom_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        clear_context()
        bind_context(
            request_id=request.headers.get("x-request-id") or str(uuid4()),
            actor_id=request.headers.get("x-actor-id"),
        )
        try:
            return await call_next(request)
        finally:
            clear_context()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
