# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service for teacher-managed student accounts.

This module provides the StudentService class for:
- Adding students (users with the student role)
- Looking up and listing students
- Editing and deleting students

Deleting a student leaves their play records and error tallies in place;
reports show those records under the unknown-user placeholder.
"""

import logging
from datetime import datetime

from hanziplay.infrastructure.store.base import (
    USERS,
    DocumentNotFoundError,
    Predicate,
    RecordStore,
    StoreError,
)
from hanziplay.models.common import MutationResult
from hanziplay.models.users import (
    CreateStudentRequest,
    StudentProfile,
    UpdateStudentRequest,
    UserRole,
)
from hanziplay.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class StudentServiceError(Exception):
    """Base exception for student service errors."""

    pass


class StudentNotFoundError(StudentServiceError):
    """Raised when a student does not exist."""

    def __init__(self, student_id: str) -> None:
        self.student_id = student_id
        super().__init__(f"Student {student_id} not found")


class StudentService:
    """Service for managing student accounts.

    Attributes:
        _store: Document store.
    """

    def __init__(self, store: RecordStore) -> None:
        """Initialize student service.

        Args:
            store: Document store.
        """
        self._store = store

    async def create_student(
        self,
        request: CreateStudentRequest,
        now: datetime | None = None,
    ) -> StudentProfile:
        """Add a student.

        The display name defaults to the email address.

        Args:
            request: Student data.
            now: Creation time (defaults to the current time).

        Returns:
            The created student.
        """
        now = now or utc_now()
        data = {
            "email": request.email,
            "userName": request.display_name or request.email,
            "role": UserRole.STUDENT.value,
            "xp": 0,
            "createdAt": now,
            "updatedAt": now,
        }
        student_id = await self._store.put(USERS, data)

        logger.info("Created student: id=%s", student_id)
        return StudentProfile.model_validate({"id": student_id, **data})

    async def get_student(self, student_id: str) -> StudentProfile | None:
        """Get a student by ID.

        Returns:
            The student, or None if the user is missing or not a student.
        """
        document = await self._store.get(USERS, student_id)
        if document is None:
            return None

        student = StudentProfile.from_document(document)
        return student if student.is_student else None

    async def require_student(self, student_id: str) -> StudentProfile:
        """Get a student by ID.

        Raises:
            StudentNotFoundError: If the user is missing or not a student.
        """
        student = await self.get_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    async def list_students(self) -> list[StudentProfile]:
        """List all students."""
        documents = await self._store.query(
            USERS,
            [Predicate("role", "==", UserRole.STUDENT.value)],
        )
        return [StudentProfile.from_document(document) for document in documents]

    async def update_student(
        self,
        student_id: str,
        request: UpdateStudentRequest,
        now: datetime | None = None,
    ) -> MutationResult:
        """Edit a student.

        Returns:
            MutationResult; failures are reported, never raised.
        """
        try:
            if await self.get_student(student_id) is None:
                return MutationResult.failed("Student not found")

            changes = request.to_changes()
            changes["updatedAt"] = now or utc_now()
            await self._store.update(USERS, student_id, changes)
        except DocumentNotFoundError:
            return MutationResult.failed("Student not found")
        except StoreError as e:
            logger.error("Failed to update student %s: %s", student_id, str(e))
            return MutationResult.failed(str(e))

        logger.info("Updated student: id=%s", student_id)
        return MutationResult.ok("Student updated successfully")

    async def delete_student(self, student_id: str) -> MutationResult:
        """Delete a student.

        Play records and error tallies are kept.

        Returns:
            MutationResult; failures are reported, never raised.
        """
        try:
            if await self.get_student(student_id) is None:
                return MutationResult.failed("Student not found")
            await self._store.delete(USERS, student_id)
        except StoreError as e:
            logger.error("Failed to delete student %s: %s", student_id, str(e))
            return MutationResult.failed(str(e))

        logger.info("Deleted student: id=%s", student_id)
        return MutationResult.ok("Student deleted successfully")
