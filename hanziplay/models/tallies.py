# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Wrong-answer tally models.

The game clients accumulate wrong answers per (student, game) in the
``errorPatterns`` collection. Each document embeds an ``ErrorAnswers``
map of per-wrong-answer counters. The dashboard only reads these
documents; counts are never written here.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from hanziplay.infrastructure.store.base import Document
from hanziplay.models.common import Reference, UtcDatetime


def _label(value: Any) -> Any:
    """Game1 stores unit numbers as numeric knowledge points."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


Label = Annotated[str, BeforeValidator(_label)]


class ErrorAnswer(BaseModel):
    """One wrong-answer counter inside a tally document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    knowledge_point: Label = Field(min_length=1, alias="KnowledgePoint")
    wrong_answer: Label = Field(min_length=1, alias="WrongAnswer")
    error_count: int = Field(default=0, ge=0, alias="ErrorCount")
    last_attempt_time: UtcDatetime | None = Field(default=None, alias="LastAttemptTime")


class ErrorTally(BaseModel):
    """A student's wrong-answer tally for one game.

    ``error_answers`` is kept raw so each embedded counter can be
    validated (and skipped) on its own.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    user_id: Reference = Field(alias="UserId")
    game_id: Reference = Field(alias="GameId")
    last_updated: UtcDatetime | None = Field(default=None, alias="LastUpdated")
    error_answers: dict[str, Any] = Field(default_factory=dict, alias="ErrorAnswers")

    @classmethod
    def from_document(cls, document: Document) -> "ErrorTally":
        """Validate a stored document.

        Raises:
            pydantic.ValidationError: If references or the answer map are malformed.
        """
        return cls.model_validate(document.to_dict())
