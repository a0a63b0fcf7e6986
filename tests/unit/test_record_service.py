# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the game record service."""

from unittest.mock import AsyncMock

import pytest
from factories import at, play

from hanziplay.domains.games import (
    HighScoreStats,
    InvalidGameTypeError,
    LevelProgressStats,
    ProgressionStats,
)
from hanziplay.domains.records import GameRecordService
from hanziplay.infrastructure.store import (
    PLAY_RECORDS,
    USERS,
    Document,
    InMemoryRecordStore,
    RecordStore,
    StoreUnavailableError,
)
from hanziplay.models.records import PlayRecordUpdate


@pytest.fixture
def record_service(store, registry) -> GameRecordService:
    """Create a record service over the seeded store."""
    return GameRecordService(store, registry)


class TestListRawRecords:
    """Tests for list_raw_records."""

    @pytest.mark.asyncio
    async def test_newest_first(self, record_service) -> None:
        records = await record_service.list_raw_records("Game2")

        assert [record.id for record in records] == ["r7", "r6", "r5"]
        assert {record.user_name for record in records} == {"Alice"}

    @pytest.mark.asyncio
    async def test_unknown_game(self, record_service) -> None:
        with pytest.raises(InvalidGameTypeError):
            await record_service.list_raw_records("Game9")


class TestStudentStats:
    """Tests for per-student stats."""

    @pytest.mark.asyncio
    async def test_level_progress(self, record_service) -> None:
        stats = await record_service.get_student_game_stats("u1", "Game1")

        assert isinstance(stats, LevelProgressStats)
        assert stats.total_play_count == 2
        assert stats.total_score == 45
        assert stats.completed_levels == {1}

    @pytest.mark.asyncio
    async def test_progression(self, record_service) -> None:
        stats = await record_service.get_student_game_stats("u1", "Game2")

        assert stats == ProgressionStats(play_count=1, max_level=3, highest_score=50)

    @pytest.mark.asyncio
    async def test_path_references_included(self, record_service) -> None:
        stats = await record_service.get_student_game_stats("u1", "Game3")

        assert stats == HighScoreStats(play_count=1, highest_score=900)

    @pytest.mark.asyncio
    async def test_full_path_and_mapping_references_included(self, registry) -> None:
        store = InMemoryRecordStore(
            {
                PLAY_RECORDS: {
                    "p1": play(
                        "projects/p/databases/(default)/documents/users/u1",
                        "Game3",
                        1,
                        300,
                        at(10),
                    ),
                    "p2": play({"id": "u1"}, {"id": "Game3"}, 1, 700, at(9)),
                    "p3": play({"id": "u2"}, "Game3", 1, 999, at(9)),
                }
            }
        )
        service = GameRecordService(store, registry)

        stats = await service.get_student_game_stats("u1", "Game3")

        assert stats == HighScoreStats(play_count=2, highest_score=700)

    @pytest.mark.asyncio
    async def test_student_without_records(self, record_service) -> None:
        stats = await record_service.get_student_game_stats("u3", "Game1")

        assert stats == LevelProgressStats()

    @pytest.mark.asyncio
    async def test_malformed_records_skipped(self, registry) -> None:
        store = InMemoryRecordStore(
            {
                PLAY_RECORDS: {
                    "ok": play("u1", "Game3", 1, 700, at(10)),
                    "bad": {"UserId": "u1", "GameId": "Game3", "Score": -1, "Datetime": at(10)},
                }
            }
        )
        service = GameRecordService(store, registry)

        records = await service.get_student_records("u1", "Game3")

        assert [record.id for record in records] == ["ok"]


class TestAllStudents:
    """Tests for get_all_students_game_records."""

    @pytest.mark.asyncio
    async def test_every_student(self, record_service) -> None:
        summaries = await record_service.get_all_students_game_records("Game1")

        by_id = {summary.student_id: summary for summary in summaries}
        assert set(by_id) == {"u1", "u2", "u3"}
        assert by_id["u1"].student_name == "Alice"
        assert by_id["u1"].stats.total_score == 45
        assert by_id["u2"].stats.total_score == 38
        assert by_id["u3"].student_name == "carol@example.com"
        assert by_id["u3"].stats.total_play_count == 0

    @pytest.mark.asyncio
    async def test_to_dict_flattens_stats(self, record_service) -> None:
        summaries = await record_service.get_all_students_game_records("Game3")

        payload = next(s.to_dict() for s in summaries if s.student_id == "u3")
        assert payload == {
            "student_id": "u3",
            "student_name": "carol@example.com",
            "play_count": 1,
            "highest_score": 2500,
        }

    @pytest.mark.asyncio
    async def test_failed_student_left_out(self, registry) -> None:
        """Test one student's failing query does not fail the listing."""
        students = [
            Document("u1", {"userName": "Alice", "role": "student"}),
            Document("u2", {"userName": "Bob", "role": "student"}),
        ]

        async def query(collection, predicates=(), order_by=None, limit=None):
            if collection == USERS:
                return students
            if any("u2" in predicate.value for predicate in predicates if predicate.op == "in"):
                raise StoreUnavailableError("Query failed")
            return [Document("r1", play("u1", "Game3", 1, 700, at(10)))]

        store = AsyncMock(spec=RecordStore)
        store.query.side_effect = query
        service = GameRecordService(store, registry)

        summaries = await service.get_all_students_game_records("Game3")

        assert [summary.student_id for summary in summaries] == ["u1"]
        assert summaries[0].stats.highest_score == 700


class TestUpdateRecord:
    """Tests for update_record."""

    @pytest.mark.asyncio
    async def test_update(self, record_service, store, fixed_now) -> None:
        result = await record_service.update_record(
            "r1", PlayRecordUpdate(score=48, is_completed=False), now=fixed_now
        )

        assert result.success is True
        assert result.message == "Game record updated successfully"
        document = await store.get(PLAY_RECORDS, "r1")
        assert document.data["Score"] == 48
        assert document.data["IsCompleted"] is False
        assert document.data["Level"] == 1
        assert document.data["LastModified"] == fixed_now

    @pytest.mark.asyncio
    async def test_update_missing(self, record_service) -> None:
        result = await record_service.update_record("nope", PlayRecordUpdate(score=1))

        assert result.success is False
        assert result.message == "Record not found"

    @pytest.mark.asyncio
    async def test_update_store_failure(self, registry) -> None:
        store = AsyncMock(spec=RecordStore)
        store.update.side_effect = StoreUnavailableError("Write failed")
        service = GameRecordService(store, registry)

        result = await service.update_record("r1", PlayRecordUpdate(score=1))

        assert result.success is False
        assert result.message == "Write failed"


class TestDeleteRecord:
    """Tests for delete_record."""

    @pytest.mark.asyncio
    async def test_delete(self, record_service, store) -> None:
        result = await record_service.delete_record("r1")

        assert result.success is True
        assert await store.get(PLAY_RECORDS, "r1") is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, record_service) -> None:
        result = await record_service.delete_record("nope")

        assert result.success is False
        assert result.is_not_found is True

    @pytest.mark.asyncio
    async def test_delete_store_failure(self, registry) -> None:
        store = AsyncMock(spec=RecordStore)
        store.get.side_effect = StoreUnavailableError("Lookup failed")
        service = GameRecordService(store, registry)

        result = await service.delete_record("r1")

        assert result.success is False
        assert result.message == "Lookup failed"
