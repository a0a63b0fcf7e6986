# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Game play record models.

Play records are written by the game clients into the ``userGameData``
collection using PascalCase field names. The models below map them to
snake_case attributes and accept either spelling on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hanziplay.infrastructure.store.base import Document
from hanziplay.models.common import Reference, UtcDatetime


class PlayRecord(BaseModel):
    """One attempt at one game level.

    Attributes:
        id: Document ID.
        user_id: Owning user ID.
        game_id: Game type identifier (``Game1``, ``Game2``, ...).
        level: Game-specific level; 0 marks a session start.
        score: Score achieved.
        is_completed: Whether the level was completed.
        timestamp: When the record was written.
        last_modified: When an admin last corrected the record.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    user_id: Reference = Field(alias="UserId")
    game_id: Reference = Field(alias="GameId")
    level: int = Field(default=0, ge=0, alias="Level")
    score: int = Field(default=0, ge=0, alias="Score")
    is_completed: bool = Field(default=False, alias="IsCompleted")
    timestamp: UtcDatetime = Field(alias="Datetime")
    last_modified: UtcDatetime | None = Field(default=None, alias="LastModified")

    @classmethod
    def from_document(cls, document: Document) -> "PlayRecord":
        """Validate a stored document.

        Raises:
            pydantic.ValidationError: If the document is malformed.
        """
        return cls.model_validate(document.to_dict())

    def to_document(self) -> dict[str, Any]:
        """Serialize with the store's field names (without ``id``)."""
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)


class ResolvedPlayRecord(PlayRecord):
    """A play record with its owner's display name and game name resolved."""

    user_name: str
    game_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "game_type": self.game_id,
            "game_name": self.game_name,
            "level": self.level,
            "score": self.score,
            "is_completed": self.is_completed,
            "timestamp": self.timestamp.isoformat(),
        }


class PlayRecordUpdate(BaseModel):
    """Admin correction of a play record.

    Only level, score and completion may change; unset fields are kept.
    """

    level: int | None = Field(default=None, ge=0)
    score: int | None = Field(default=None, ge=0)
    is_completed: bool | None = None

    def to_changes(self) -> dict[str, Any]:
        """Store field changes for the set fields."""
        changes: dict[str, Any] = {}
        if self.level is not None:
            changes["Level"] = self.level
        if self.score is not None:
            changes["Score"] = self.score
        if self.is_completed is not None:
            changes["IsCompleted"] = self.is_completed
        return changes
