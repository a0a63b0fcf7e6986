# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- A pinned clock for day-window reports
- A seeded in-memory document store
- The default game registry
"""

from datetime import datetime

import pytest
from factories import FIXED_NOW, seed_documents

from hanziplay.domains.games import GameRegistry, build_default_registry
from hanziplay.infrastructure.store import InMemoryRecordStore


@pytest.fixture
def fixed_now() -> datetime:
    """Provide the pinned report clock."""
    return FIXED_NOW


@pytest.fixture
def registry() -> GameRegistry:
    """Provide a fresh default game registry."""
    return build_default_registry()


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Provide an in-memory store seeded with the shared documents."""
    return InMemoryRecordStore(seed_documents())


@pytest.fixture
def empty_store() -> InMemoryRecordStore:
    """Provide an empty in-memory store."""
    return InMemoryRecordStore()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
