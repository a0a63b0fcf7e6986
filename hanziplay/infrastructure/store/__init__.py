# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document store backends.

Usage:
    from hanziplay.infrastructure.store import build_store

    store = await build_store(settings)
"""

from typing import TYPE_CHECKING

from hanziplay.infrastructure.store.base import (
    ERROR_TALLIES,
    GAMES,
    PLAY_RECORDS,
    USERS,
    Document,
    DocumentNotFoundError,
    OrderBy,
    Predicate,
    RecordStore,
    StoreError,
    StoreUnavailableError,
    apply_query,
)
from hanziplay.infrastructure.store.memory import InMemoryRecordStore
from hanziplay.infrastructure.store.sql import SQLAlchemyRecordStore

if TYPE_CHECKING:
    from hanziplay.core.config.settings import Settings


async def build_store(settings: "Settings") -> RecordStore:
    """Create the configured store backend.

    Args:
        settings: Application settings.

    Returns:
        A ready-to-use RecordStore.
    """
    if settings.store.backend == "memory":
        return InMemoryRecordStore()

    store = SQLAlchemyRecordStore.from_settings(settings.store)
    await store.create_schema()
    return store


__all__ = [
    # Collections
    "USERS",
    "GAMES",
    "PLAY_RECORDS",
    "ERROR_TALLIES",
    # Interface
    "RecordStore",
    "Document",
    "Predicate",
    "OrderBy",
    "apply_query",
    # Errors
    "StoreError",
    "StoreUnavailableError",
    "DocumentNotFoundError",
    # Backends
    "InMemoryRecordStore",
    "SQLAlchemyRecordStore",
    "build_store",
]
