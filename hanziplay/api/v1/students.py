# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student management API endpoints.

This module provides endpoints for teacher-managed students:
- GET / - List students
- POST / - Add a student
- GET /{student_id} - Get a student
- PATCH /{student_id} - Edit a student
- DELETE /{student_id} - Delete a student
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hanziplay.api.dependencies import get_student_service
from hanziplay.api.v1.responses import mutation_response
from hanziplay.domains.students import StudentService
from hanziplay.models.common import MutationResult
from hanziplay.models.users import CreateStudentRequest, StudentProfile, UpdateStudentRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class StudentResponse(BaseModel):
    """Student details."""

    id: str = Field(description="Student ID")
    email: str | None = Field(description="Student email")
    display_name: str = Field(description="Name shown in reports")
    experience_points: int = Field(description="Accumulated experience points")
    created_at: datetime | None = Field(description="When the student was added")

    @classmethod
    def from_profile(cls, student: StudentProfile) -> "StudentResponse":
        return cls(
            id=student.id,
            email=student.email,
            display_name=student.display_name,
            experience_points=student.experience_points,
            created_at=student.created_at,
        )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[StudentResponse],
    summary="List students",
)
async def list_students(
    service: Annotated[StudentService, Depends(get_student_service)],
) -> list[StudentResponse]:
    """List all students."""
    students = await service.list_students()
    return [StudentResponse.from_profile(student) for student in students]


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a student",
)
async def create_student(
    request: CreateStudentRequest,
    service: Annotated[StudentService, Depends(get_student_service)],
) -> StudentResponse:
    """Add a student."""
    student = await service.create_student(request)
    return StudentResponse.from_profile(student)


@router.get(
    "/{student_id}",
    response_model=StudentResponse,
    summary="Get a student",
)
async def get_student(
    student_id: str,
    service: Annotated[StudentService, Depends(get_student_service)],
) -> StudentResponse:
    """Get a student."""
    student = await service.get_student(student_id)
    if student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found",
        )
    return StudentResponse.from_profile(student)


@router.patch(
    "/{student_id}",
    response_model=MutationResult,
    summary="Edit a student",
)
async def update_student(
    student_id: str,
    request: UpdateStudentRequest,
    service: Annotated[StudentService, Depends(get_student_service)],
) -> JSONResponse:
    """Edit a student."""
    result = await service.update_student(student_id, request)
    return mutation_response(result)


@router.delete(
    "/{student_id}",
    response_model=MutationResult,
    summary="Delete a student",
    description="Delete a student. Their play records are kept.",
)
async def delete_student(
    student_id: str,
    service: Annotated[StudentService, Depends(get_student_service)],
) -> JSONResponse:
    """Delete a student."""
    result = await service.delete_student(student_id)
    return mutation_response(result)
