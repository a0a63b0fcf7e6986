# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    reports: Global progress, error patterns and student reports.
    records: Raw play records and admin record corrections.
    students: Student management endpoints (CRUD).
    users: User administration endpoints (roles, migration).
"""

from fastapi import APIRouter

from hanziplay.api.v1 import records, reports, students, users


def build_router(prefix: str = "/api/v1") -> APIRouter:
    """Create the v1 router under the given prefix."""
    router = APIRouter(prefix=prefix)

    # Include domain routers
    router.include_router(reports.router, prefix="/reports", tags=["Reports"])
    router.include_router(records.router, prefix="/records", tags=["Game Records"])
    router.include_router(students.router, prefix="/students", tags=["Students"])
    router.include_router(users.router, prefix="/users", tags=["Users"])

    return router


__all__ = ["build_router"]
