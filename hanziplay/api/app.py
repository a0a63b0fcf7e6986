# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the HanziPlay
dashboard API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hanziplay import __version__
from hanziplay.api.middleware import RequestContextMiddleware
from hanziplay.api.routes import health
from hanziplay.api.v1 import build_router
from hanziplay.core.config import Settings, get_settings
from hanziplay.domains.games import InvalidGameTypeError
from hanziplay.infrastructure.store import RecordStore, StoreUnavailableError, build_store
from hanziplay.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the configured document store on startup unless one was
    supplied to create_app, and closes a store it opened on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "Starting HanziPlay dashboard API: environment=%s, store=%s",
        settings.environment,
        settings.store.backend,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    owned_store: RecordStore | None = None
    if app.state.store is None:
        owned_store = await build_store(settings)
        app.state.store = owned_store
        logger.info("Document store initialized")

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    if owned_store is not None:
        await owned_store.close()
        app.state.store = None
        logger.info("Document store closed")

    logger.info("HanziPlay dashboard API shutdown complete")


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Report store failures as 503 so the client can retry."""
    logger.error("Store unavailable: path=%s, error=%s", request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Document store unavailable"},
    )


async def invalid_game_type_handler(request: Request, exc: InvalidGameTypeError) -> JSONResponse:
    """Report unknown game types as 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "available": exc.available},
    )


def create_app(
    settings: Settings | None = None,
    store: RecordStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to get_settings()).
        store: Document store to serve from; when omitted the configured
            backend is opened at startup.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api.title,
        description="Teacher dashboard reports for the HanziPlay games",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    # =========================================================================
    # Exception handlers
    # =========================================================================

    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(InvalidGameTypeError, invalid_game_type_handler)

    # =========================================================================
    # Middleware
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    # =========================================================================
    # Routes
    # =========================================================================

    app.include_router(health.router, tags=["Health"])
    app.include_router(build_router(settings.api.prefix))

    return app

