# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the document store opened at startup
- Get the application settings
- Get service instances

Example:
    @router.get("/global")
    async def global_report(
        service: ReportService = Depends(get_report_service),
    ):
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from hanziplay.core.config import Settings, get_settings
from hanziplay.domains.games import GameRegistry, get_game_registry
from hanziplay.domains.records import GameRecordService, RawRecordFetcher
from hanziplay.domains.reports import ReportService
from hanziplay.domains.students import StudentService
from hanziplay.domains.users import UserService
from hanziplay.infrastructure.store import RecordStore

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_store(request: Request) -> RecordStore:
    """Get the document store.

    Raises:
        HTTPException: 503 if the store has not been opened.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document store not initialized",
        )
    return store


def get_registry() -> GameRegistry:
    """Get the game registry."""
    return get_game_registry()


def get_report_service(
    store: Annotated[RecordStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    registry: Annotated[GameRegistry, Depends(get_registry)],
) -> ReportService:
    """Get a report service bound to the store."""
    return ReportService.from_settings(store, settings, registry)


def get_record_service(
    store: Annotated[RecordStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    registry: Annotated[GameRegistry, Depends(get_registry)],
) -> GameRecordService:
    """Get a game record service bound to the store."""
    fetcher = RawRecordFetcher(store, registry, settings.reports.unknown_user_label)
    return GameRecordService(store, registry, fetcher)


def get_student_service(
    store: Annotated[RecordStore, Depends(get_store)],
) -> StudentService:
    """Get a student service bound to the store."""
    return StudentService(store)


def get_user_service(
    store: Annotated[RecordStore, Depends(get_store)],
) -> UserService:
    """Get a user service bound to the store."""
    return UserService(store)
