# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Game record service for teacher and admin record views.

This module provides the GameRecordService class for:
- Listing a game's raw records with owner names
- Reducing one student's records into per-game stats
- Listing per-student stats for every student of a game
- Admin correction and deletion of individual records
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from hanziplay.domains.games.reducers import GameStats
from hanziplay.domains.games.registry import GameRegistry, GameType, get_game_registry
from hanziplay.domains.records.fetcher import (
    RawRecordFetcher,
    game_reference_predicate,
    parse_play_record,
)
from hanziplay.infrastructure.store.base import (
    PLAY_RECORDS,
    USERS,
    DocumentNotFoundError,
    Predicate,
    RecordStore,
    StoreError,
    StoreUnavailableError,
)
from hanziplay.models.common import MutationResult
from hanziplay.models.records import PlayRecord, PlayRecordUpdate, ResolvedPlayRecord
from hanziplay.models.users import UserRole, display_name
from hanziplay.utils.datetime import utc_now
from hanziplay.utils.folding import best_effort

logger = logging.getLogger(__name__)


def user_reference_predicate(user_id: str) -> Predicate:
    """Match a user reference in any stored form (bare ID, path or mapping)."""
    return Predicate("UserId", "ref", user_id)


@dataclass
class StudentGameSummary:
    """One student's stats for one game.

    Attributes:
        student_id: Student ID.
        student_name: Display name of the student.
        stats: Reduced game stats.
    """

    student_id: str
    student_name: str
    stats: GameStats

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            **self.stats.to_dict(),
        }


class GameRecordService:
    """Service for reading and correcting play records.

    Attributes:
        _store: Document store.
        _registry: Game registry.
        _fetcher: Raw record fetcher.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: GameRegistry | None = None,
        fetcher: RawRecordFetcher | None = None,
    ) -> None:
        """Initialize the game record service.

        Args:
            store: Document store.
            registry: Game registry (defaults to the built-in games).
            fetcher: Raw record fetcher (built from the store if omitted).
        """
        self._store = store
        self._registry = registry if registry is not None else get_game_registry()
        self._fetcher = fetcher or RawRecordFetcher(store, self._registry)

    async def list_raw_records(self, game_type: str | GameType) -> list[ResolvedPlayRecord]:
        """List a game's records, newest first, with owner names.

        Raises:
            InvalidGameTypeError: If the game type is not registered.
            StoreUnavailableError: If the query fails.
        """
        return await self._fetcher.fetch_records(game_type)

    async def get_student_records(
        self,
        student_id: str,
        game_type: str | GameType,
    ) -> list[PlayRecord]:
        """Load one student's records of one game.

        Malformed documents are skipped.

        Raises:
            InvalidGameTypeError: If the game type is not registered.
            StoreUnavailableError: If the query fails.
        """
        descriptor = self._registry.get(game_type)
        documents = await self._store.query(
            PLAY_RECORDS,
            [
                user_reference_predicate(student_id),
                game_reference_predicate(descriptor.game_type),
            ],
        )
        fold = best_effort(
            (parse_play_record(document) for document in documents),
            context="play record",
        )
        return fold.items

    async def get_student_game_stats(
        self,
        student_id: str,
        game_type: str | GameType,
    ) -> GameStats:
        """Reduce one student's records of one game into stats.

        Args:
            student_id: Student ID.
            game_type: Game identifier.

        Returns:
            The game's stats variant.

        Raises:
            InvalidGameTypeError: If the game type is not registered.
            StoreUnavailableError: If the query fails.
        """
        descriptor = self._registry.get(game_type)
        records = await self.get_student_records(student_id, descriptor.game_type)
        return descriptor.reduce(records)

    async def get_all_students_game_records(
        self,
        game_type: str | GameType,
    ) -> list[StudentGameSummary]:
        """Reduce every student's records of one game.

        A student whose stats cannot be loaded is logged and left out.

        Raises:
            InvalidGameTypeError: If the game type is not registered.
            StoreUnavailableError: If the student list cannot be loaded.
        """
        descriptor = self._registry.get(game_type)
        students = await self._store.query(
            USERS,
            [Predicate("role", "==", UserRole.STUDENT.value)],
        )

        async def summarize(student_id: str, name: str) -> StudentGameSummary | None:
            try:
                stats = await self.get_student_game_stats(student_id, descriptor.game_type)
            except StoreUnavailableError as e:
                logger.error(
                    "Failed to load stats: student_id=%s, game=%s, error=%s",
                    student_id,
                    descriptor.game_type.value,
                    str(e),
                )
                return None
            return StudentGameSummary(student_id=student_id, student_name=name, stats=stats)

        summaries = await asyncio.gather(
            *(summarize(student.id, display_name(student.data)) for student in students)
        )
        return [summary for summary in summaries if summary is not None]

    async def update_record(
        self,
        record_id: str,
        update: PlayRecordUpdate,
        now: datetime | None = None,
    ) -> MutationResult:
        """Correct a record's level, score or completion flag.

        Args:
            record_id: Record ID.
            update: Fields to change.
            now: Modification time (defaults to the current time).

        Returns:
            MutationResult; failures are reported, never raised.
        """
        changes = update.to_changes()
        changes["LastModified"] = now or utc_now()

        try:
            await self._store.update(PLAY_RECORDS, record_id, changes)
        except DocumentNotFoundError:
            return MutationResult.failed("Record not found")
        except StoreError as e:
            logger.error("Failed to update record %s: %s", record_id, str(e))
            return MutationResult.failed(str(e))

        logger.info("Updated play record: id=%s, fields=%s", record_id, sorted(changes))
        return MutationResult.ok("Game record updated successfully")

    async def delete_record(self, record_id: str) -> MutationResult:
        """Delete a record.

        Returns:
            MutationResult; failures are reported, never raised.
        """
        try:
            existing = await self._store.get(PLAY_RECORDS, record_id)
            if existing is None:
                return MutationResult.failed("Record not found")
            await self._store.delete(PLAY_RECORDS, record_id)
        except StoreError as e:
            logger.error("Failed to delete record %s: %s", record_id, str(e))
            return MutationResult.failed(str(e))

        logger.info("Deleted play record: id=%s", record_id)
        return MutationResult.ok("Game record deleted successfully")
