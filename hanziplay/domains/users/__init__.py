# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain: dashboard user administration."""

from hanziplay.domains.users.service import (
    EmailExistsError,
    InvalidRoleError,
    UserService,
    UserServiceError,
)

__all__ = [
    "UserService",
    "UserServiceError",
    "EmailExistsError",
    "InvalidRoleError",
]
