# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document and request models."""

from hanziplay.models.common import (
    MutationResult,
    Reference,
    UtcDatetime,
    parse_reference,
)
from hanziplay.models.records import PlayRecord, PlayRecordUpdate, ResolvedPlayRecord
from hanziplay.models.tallies import ErrorAnswer, ErrorTally
from hanziplay.models.users import (
    ASSIGNABLE_ROLES,
    CreateStudentRequest,
    CreateUserRequest,
    StudentProfile,
    UpdateRoleRequest,
    UpdateStudentRequest,
    UserAccount,
    UserRole,
    display_name,
)

__all__ = [
    # Common
    "MutationResult",
    "Reference",
    "UtcDatetime",
    "parse_reference",
    # Play records
    "PlayRecord",
    "ResolvedPlayRecord",
    "PlayRecordUpdate",
    # Error tallies
    "ErrorAnswer",
    "ErrorTally",
    # Users
    "UserRole",
    "ASSIGNABLE_ROLES",
    "UserAccount",
    "StudentProfile",
    "CreateStudentRequest",
    "UpdateStudentRequest",
    "CreateUserRequest",
    "UpdateRoleRequest",
    "display_name",
]
