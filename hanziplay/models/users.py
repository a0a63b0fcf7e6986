# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User and student models.

Users live in the ``users`` collection with camelCase field names.
Older teacher/admin documents carry ``displayName`` instead of
``userName``; both are read.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hanziplay.infrastructure.store.base import Document
from hanziplay.models.common import UtcDatetime


class UserRole(str, Enum):
    """Dashboard user roles."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


# Roles an admin may assign through role updates
ASSIGNABLE_ROLES = frozenset({UserRole.ADMIN.value, UserRole.TEACHER.value})


def display_name(user: dict[str, Any] | None, fallback: str = "Unknown User") -> str:
    """Get the display name for a raw user payload.

    Prefers ``userName``, then legacy ``displayName``, then ``email``.
    """
    if not user:
        return fallback
    return user.get("userName") or user.get("displayName") or user.get("email") or fallback


class UserAccount(BaseModel):
    """A dashboard user of any role."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: str | None = None
    user_name: str | None = Field(default=None, alias="userName")
    legacy_display_name: str | None = Field(default=None, alias="displayName")
    role: str | None = None
    experience_points: int = Field(default=0, alias="xp")
    created_at: UtcDatetime | None = Field(default=None, alias="createdAt")
    updated_at: UtcDatetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_document(cls, document: Document) -> "UserAccount":
        return cls.model_validate(document.to_dict())

    @property
    def display_name(self) -> str:
        return self.user_name or self.legacy_display_name or self.email or "Unknown User"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
            "experience_points": self.experience_points,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class StudentProfile(UserAccount):
    """A user with the student role."""

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value


class CreateStudentRequest(BaseModel):
    """Teacher request to add a student."""

    email: str = Field(min_length=3, description="Student email")
    display_name: str | None = Field(default=None, description="Name shown in reports")


class UpdateStudentRequest(BaseModel):
    """Editable student fields; unset fields are kept."""

    email: str | None = Field(default=None, min_length=3)
    display_name: str | None = None
    experience_points: int | None = Field(default=None, ge=0)

    def to_changes(self) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if self.email is not None:
            changes["email"] = self.email
        if self.display_name:
            changes["userName"] = self.display_name
        if self.experience_points is not None:
            changes["xp"] = self.experience_points
        return changes


class CreateUserRequest(BaseModel):
    """Admin request to add a teacher or admin."""

    email: str = Field(min_length=3)
    user_name: str = Field(min_length=1)
    role: UserRole = UserRole.TEACHER


class UpdateRoleRequest(BaseModel):
    """Admin request to change a user's role."""

    role: str
