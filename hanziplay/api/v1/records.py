# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Game record API endpoints.

This module provides endpoints for play records:
- GET /{game_type} - A game's raw records, newest first
- GET /{game_type}/students - Every student's stats for a game
- GET /{game_type}/students/{student_id} - One student's stats for a game
- PATCH /{record_id} - Correct a record (admin)
- DELETE /{record_id} - Delete a record (admin)
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hanziplay.api.dependencies import get_record_service
from hanziplay.api.v1.responses import mutation_response
from hanziplay.domains.records import GameRecordService
from hanziplay.models.common import MutationResult
from hanziplay.models.records import PlayRecordUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/{game_type}",
    summary="List raw records",
    description="All records of a game with owner names, newest first.",
)
async def list_records(
    game_type: str,
    service: Annotated[GameRecordService, Depends(get_record_service)],
) -> list[dict[str, Any]]:
    """List a game's raw records."""
    records = await service.list_raw_records(game_type)
    return [record.to_dict() for record in records]


@router.get(
    "/{game_type}/students",
    summary="Per-student stats",
    description="Reduced stats of every student for a game.",
)
async def list_student_stats(
    game_type: str,
    service: Annotated[GameRecordService, Depends(get_record_service)],
) -> list[dict[str, Any]]:
    """List every student's stats for a game."""
    summaries = await service.get_all_students_game_records(game_type)
    return [summary.to_dict() for summary in summaries]


@router.get(
    "/{game_type}/students/{student_id}",
    summary="Student stats",
    description="Reduced stats of one student for a game.",
)
async def get_student_stats(
    game_type: str,
    student_id: str,
    service: Annotated[GameRecordService, Depends(get_record_service)],
) -> dict[str, Any]:
    """Get one student's stats for a game."""
    stats = await service.get_student_game_stats(student_id, game_type)
    return {"student_id": student_id, "game_type": game_type, **stats.to_dict()}


@router.patch(
    "/{record_id}",
    response_model=MutationResult,
    summary="Correct a record",
    description="Change a record's level, score or completion flag.",
)
async def update_record(
    record_id: str,
    request: PlayRecordUpdate,
    service: Annotated[GameRecordService, Depends(get_record_service)],
) -> JSONResponse:
    """Correct a play record."""
    result = await service.update_record(record_id, request)
    return mutation_response(result)


@router.delete(
    "/{record_id}",
    response_model=MutationResult,
    summary="Delete a record",
)
async def delete_record(
    record_id: str,
    service: Annotated[GameRecordService, Depends(get_record_service)],
) -> JSONResponse:
    """Delete a play record."""
    result = await service.delete_record(record_id)
    return mutation_response(result)
