# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Report API endpoints.

This module provides endpoints for dashboard reports:
- GET /global - Global progress across students and games
- GET /errors - Global or per-student error patterns
- GET /students/{student_id} - A student's progress across games
- GET /students/{student_id}/error-trends - A student's daily errors

Example:
    GET /api/v1/reports/global?game_type=Game3&start_date=2025-03-01
"""

import logging
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hanziplay.api.dependencies import get_app_settings, get_report_service
from hanziplay.core.config import Settings
from hanziplay.domains.reports import ErrorFilters, ProgressFilters, ReportService
from hanziplay.domains.students import StudentNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/global",
    summary="Global progress report",
    description="Play counts, score stats, completion rates and daily trends per game.",
)
async def get_global_report(
    service: Annotated[ReportService, Depends(get_report_service)],
    game_type: str | None = Query(None, description="Restrict to one game"),
    start_date: date | None = Query(None, description="First day, inclusive"),
    end_date: date | None = Query(None, description="Last day, inclusive"),
) -> dict[str, Any]:
    """Get the global progress report."""
    filters = ProgressFilters(game_type=game_type, start_date=start_date, end_date=end_date)
    stats = await service.get_global_progress(filters)
    return stats.to_dict()


@router.get(
    "/errors",
    summary="Error pattern analysis",
    description=(
        "Ranked wrong answers, daily error frequency and knowledge point "
        "concentration. Supplying student_id returns the single-student view."
    ),
)
async def get_error_report(
    service: Annotated[ReportService, Depends(get_report_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    game_type: str | None = Query(None, description="Restrict to one game"),
    student_id: str | None = Query(None, description="Restrict to one student"),
    start_date: date | None = Query(None, description="First day, inclusive"),
    end_date: date | None = Query(None, description="Last day, inclusive"),
    limit: int | None = Query(
        None,
        ge=1,
        le=1000,
        description="Maximum tallies read. Without any filter the newest are capped",
    ),
    top: int | None = Query(None, ge=1, description="Wrong answers kept per game"),
) -> dict[str, Any]:
    """Get the error pattern analysis."""
    filters = ErrorFilters(
        game_type=game_type,
        student_id=student_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )
    analysis = await service.get_error_patterns(filters)
    return analysis.to_dict(top_n=top or settings.reports.top_error_patterns)


@router.get(
    "/students/{student_id}",
    summary="Student progress report",
    description="A student's stats, daily plays and recent games for every game.",
)
async def get_student_report(
    student_id: str,
    service: Annotated[ReportService, Depends(get_report_service)],
) -> dict[str, Any]:
    """Get a student's progress report."""
    try:
        report = await service.get_student_progress(student_id)
    except StudentNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found",
        )
    return report.to_dict()


@router.get(
    "/students/{student_id}/error-trends",
    summary="Student error trends",
    description="A student's daily error totals over the trailing days.",
)
async def get_student_error_trends(
    student_id: str,
    service: Annotated[ReportService, Depends(get_report_service)],
    days: int = Query(30, ge=1, le=365, description="Window length in days"),
) -> dict[str, Any]:
    """Get a student's error trends."""
    trends = await service.get_student_error_trends(student_id, days=days)
    return trends.to_dict()
