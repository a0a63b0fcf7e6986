# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration service.

This module provides the UserService class for:
- Listing users, optionally by role
- Creating teacher and admin accounts
- Changing a user's role
- Migrating legacy ``displayName`` fields to ``userName``
"""

import asyncio
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
    ASSIGNABLE_ROLES,
    CreateUserRequest,
    UserAccount,
    UserRole,
)
from hanziplay.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class EmailExistsError(UserServiceError):
    """Raised when an email is already registered."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Email already exists")


class InvalidRoleError(UserServiceError):
    """Raised when a role cannot be assigned."""

    def __init__(self, role: str) -> None:
        self.role = role
        allowed = ", ".join(sorted(ASSIGNABLE_ROLES))
        super().__init__(f"Invalid role '{role}'. Allowed: {allowed}")


class UserService:
    """Service for administering dashboard users.

    Attributes:
        _store: Document store.
    """

    def __init__(self, store: RecordStore) -> None:
        """Initialize user service.

        Args:
            store: Document store.
        """
        self._store = store

    async def get_user(self, user_id: str) -> UserAccount | None:
        """Get a user by ID, or None if missing."""
        document = await self._store.get(USERS, user_id)
        if document is None:
            return None
        return UserAccount.from_document(document)

    async def list_users(self, role: str | None = None) -> list[UserAccount]:
        """List users, optionally restricted to one role."""
        predicates = [Predicate("role", "==", role)] if role else []
        documents = await self._store.query(USERS, predicates)
        return [UserAccount.from_document(document) for document in documents]

    async def email_exists(self, email: str) -> bool:
        """Check whether an email is already registered."""
        documents = await self._store.query(USERS, [Predicate("email", "==", email)], limit=1)
        return bool(documents)

    async def create_user(
        self,
        request: CreateUserRequest,
        now: datetime | None = None,
    ) -> UserAccount:
        """Create a teacher or admin account.

        Args:
            request: User data.
            now: Creation time (defaults to the current time).

        Returns:
            The created user.

        Raises:
            EmailExistsError: If the email is already registered.
        """
        if await self.email_exists(request.email):
            raise EmailExistsError(request.email)

        now = now or utc_now()
        data = {
            "email": request.email,
            "userName": request.user_name,
            "role": request.role.value,
            "createdAt": now,
            "updatedAt": now,
        }
        user_id = await self._store.put(USERS, data)

        logger.info("Created user: id=%s, role=%s", user_id, request.role.value)
        return UserAccount.model_validate({"id": user_id, **data})

    async def update_user_role(
        self,
        user_id: str,
        role: str,
        now: datetime | None = None,
    ) -> MutationResult:
        """Change a user's role.

        Args:
            user_id: User ID.
            role: New role; only ``admin`` and ``teacher`` can be assigned.
            now: Modification time (defaults to the current time).

        Returns:
            MutationResult for a missing user or a store failure.

        Raises:
            InvalidRoleError: If the role cannot be assigned.
        """
        if role not in ASSIGNABLE_ROLES:
            raise InvalidRoleError(role)

        try:
            await self._store.update(USERS, user_id, {"role": role, "updatedAt": now or utc_now()})
        except DocumentNotFoundError:
            return MutationResult.failed("User not found")
        except StoreError as e:
            logger.error("Failed to update role of user %s: %s", user_id, str(e))
            return MutationResult.failed(str(e))

        logger.info("Updated user role: id=%s, role=%s", user_id, role)
        return MutationResult.ok("User role updated successfully")

    async def migrate_display_names(self, now: datetime | None = None) -> MutationResult:
        """Copy legacy ``displayName`` into ``userName`` for staff accounts.

        Only admin and teacher users that have a ``displayName`` but no
        ``userName`` are changed.

        Returns:
            MutationResult with the number of migrated users.
        """
        now = now or utc_now()
        staff_roles = [UserRole.ADMIN.value, UserRole.TEACHER.value]

        try:
            documents = await self._store.query(USERS, [Predicate("role", "in", staff_roles)])
            pending = [
                document
                for document in documents
                if document.data.get("displayName") and not document.data.get("userName")
            ]
            await asyncio.gather(
                *(
                    self._store.update(
                        USERS,
                        document.id,
                        {"userName": document.data["displayName"], "updatedAt": now},
                    )
                    for document in pending
                )
            )
        except StoreError as e:
            logger.error("Display name migration failed: %s", str(e))
            return MutationResult.failed(f"Failed to migrate users: {e}")

        if not pending:
            return MutationResult.ok("No users needed migration")

        logger.info("Migrated display names: users=%d", len(pending))
        return MutationResult.ok(
            f"Successfully migrated {len(pending)} users from displayName to userName"
        )
