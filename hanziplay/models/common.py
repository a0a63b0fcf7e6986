# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared model helpers."""

from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field

from hanziplay.utils.datetime import ensure_utc
from hanziplay.utils.references import parse_reference


def validate_reference(value: Any) -> str:
    """Validate a reference field, rejecting values that are not references."""
    reference = parse_reference(value)
    if reference is None:
        raise ValueError("missing or malformed document reference")
    return reference


def _to_utc(value: datetime) -> datetime:
    return ensure_utc(value)


# Field types: references reduce to bare IDs, instants are normalized to UTC
Reference = Annotated[str, BeforeValidator(validate_reference)]
UtcDatetime = Annotated[datetime, AfterValidator(_to_utc)]


class MutationResult(BaseModel):
    """Outcome of an admin update or delete.

    Mutations report failure in-band so callers can render an inline
    message without an exception boundary.
    """

    success: bool = Field(description="Whether the mutation was applied")
    message: str = Field(description="Human-readable outcome")

    @classmethod
    def ok(cls, message: str) -> "MutationResult":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, message: str) -> "MutationResult":
        return cls(success=False, message=message)

    @property
    def is_not_found(self) -> bool:
        return not self.success and self.message.lower().endswith("not found")
