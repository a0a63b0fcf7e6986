# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration API endpoints.

This module provides endpoints for admins:
- GET / - List users, optionally by role
- POST / - Create a teacher or admin
- PATCH /{user_id}/role - Change a user's role
- POST /migrate-display-names - Copy legacy displayName into userName
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hanziplay.api.dependencies import get_user_service
from hanziplay.api.v1.responses import mutation_response
from hanziplay.domains.users import EmailExistsError, InvalidRoleError, UserService
from hanziplay.models.common import MutationResult
from hanziplay.models.users import CreateUserRequest, UpdateRoleRequest, UserAccount

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class UserResponse(BaseModel):
    """User details."""

    id: str = Field(description="User ID")
    email: str | None = Field(description="User email")
    display_name: str = Field(description="Display name")
    role: str | None = Field(description="User role")
    created_at: datetime | None = Field(description="When the user was created")

    @classmethod
    def from_account(cls, user: UserAccount) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=user.role,
            created_at=user.created_at,
        )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List users",
)
async def list_users(
    service: Annotated[UserService, Depends(get_user_service)],
    role: str | None = Query(None, description="Restrict to one role"),
) -> list[UserResponse]:
    """List users."""
    users = await service.list_users(role)
    return [UserResponse.from_account(user) for user in users]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    request: CreateUserRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Create a teacher or admin."""
    try:
        user = await service.create_user(request)
    except EmailExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists",
        )
    return UserResponse.from_account(user)


@router.patch(
    "/{user_id}/role",
    response_model=MutationResult,
    summary="Change a user's role",
)
async def update_user_role(
    user_id: str,
    request: UpdateRoleRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> JSONResponse:
    """Change a user's role."""
    try:
        result = await service.update_user_role(user_id, request.role)
    except InvalidRoleError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return mutation_response(result)


@router.post(
    "/migrate-display-names",
    response_model=MutationResult,
    summary="Migrate legacy display names",
)
async def migrate_display_names(
    service: Annotated[UserService, Depends(get_user_service)],
) -> JSONResponse:
    """Copy legacy displayName into userName for staff users."""
    result = await service.migrate_display_names()
    return mutation_response(result)
