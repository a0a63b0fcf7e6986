# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the report service."""

from datetime import date

import pytest
from factories import at, play

from hanziplay.core.config.settings import ReportSettings, Settings
from hanziplay.domains.games import HighScoreStats, LevelProgressStats, ProgressionStats
from hanziplay.domains.reports import (
    ErrorFilters,
    GlobalErrorAnalysis,
    ProgressFilters,
    ReportService,
    StudentErrorAnalysis,
)
from hanziplay.domains.students import StudentNotFoundError
from hanziplay.infrastructure.store import PLAY_RECORDS, USERS, InMemoryRecordStore


@pytest.fixture
def report_service(store, registry) -> ReportService:
    """Create a report service over the seeded store."""
    return ReportService(store, registry)


class TestPassThrough:
    """Tests for the global reports."""

    @pytest.mark.asyncio
    async def test_global_progress(self, report_service, fixed_now) -> None:
        stats = await report_service.get_global_progress(
            ProgressFilters(game_type="Game1"), now=fixed_now
        )

        assert stats.total_play_count == 4

    @pytest.mark.asyncio
    async def test_error_patterns_views(self, report_service, fixed_now) -> None:
        global_view = await report_service.get_error_patterns(now=fixed_now)
        student_view = await report_service.get_error_patterns(
            ErrorFilters(student_id="u2"), now=fixed_now
        )

        assert isinstance(global_view, GlobalErrorAnalysis)
        assert isinstance(student_view, StudentErrorAnalysis)
        assert student_view.total_error_count == 5


class TestStudentProgress:
    """Tests for get_student_progress."""

    @pytest.mark.asyncio
    async def test_stats_per_game(self, report_service, fixed_now) -> None:
        report = await report_service.get_student_progress("u1", now=fixed_now)

        assert list(report.game_stats) == ["Game1", "Game2", "Game3"]
        game1 = report.game_stats["Game1"]
        assert isinstance(game1.stats, LevelProgressStats)
        assert game1.stats.total_score == 45
        assert game1.avg_score == pytest.approx(37.5)
        assert game1.completion_rate == pytest.approx(1.0)
        assert [record.id for record in game1.raw_records] == ["r1", "r2"]
        assert report.game_stats["Game2"].stats == ProgressionStats(
            play_count=1, max_level=3, highest_score=50
        )
        assert report.game_stats["Game3"].stats == HighScoreStats(play_count=1, highest_score=900)

    @pytest.mark.asyncio
    async def test_total_play_count(self, report_service, fixed_now) -> None:
        report = await report_service.get_student_progress("u1", now=fixed_now)

        # Game2 counts session starts only
        assert report.total_play_count == 4

    @pytest.mark.asyncio
    async def test_best_game(self, report_service, fixed_now) -> None:
        report = await report_service.get_student_progress("u1", now=fixed_now)

        assert report.best_game.game_type == "Game3"
        assert report.best_game.score == 900

    @pytest.mark.asyncio
    async def test_recent_games_newest_first(self, report_service, fixed_now) -> None:
        report = await report_service.get_student_progress("u1", now=fixed_now)

        assert [(game.game_type, game.score) for game in report.recent_games] == [
            ("Game1", 30),
            ("Game2", 40),
            ("Game2", 50),
            ("Game2", 0),
            ("Game1", 45),
            ("Game3", 900),
        ]

    @pytest.mark.asyncio
    async def test_recent_games_capped(self, store, registry, fixed_now) -> None:
        service = ReportService(store, registry, recent_games_limit=3)

        report = await service.get_student_progress("u1", now=fixed_now)

        assert len(report.recent_games) == 3
        assert report.recent_games[0].timestamp == at(10)

    @pytest.mark.asyncio
    async def test_play_history(self, report_service, fixed_now) -> None:
        report = await report_service.get_student_progress("u1", now=fixed_now)

        history = report.game_stats["Game2"].play_history
        assert len(history) == 7
        assert history[-1].date == "2025-03-10"
        assert history[-1].play_count == 3

    @pytest.mark.asyncio
    async def test_student_without_records(self, registry, fixed_now) -> None:
        store = InMemoryRecordStore({USERS: {"u4": {"email": "eve@example.com", "role": "student"}}})
        service = ReportService(store, registry)

        report = await service.get_student_progress("u4", now=fixed_now)

        assert report.best_game is None
        assert report.recent_games == []
        assert report.total_play_count == 0
        assert report.to_dict()["best_game"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("student_id", ["ghost", "t1"])
    async def test_not_a_student(self, report_service, fixed_now, student_id) -> None:
        with pytest.raises(StudentNotFoundError):
            await report_service.get_student_progress(student_id, now=fixed_now)

    @pytest.mark.asyncio
    async def test_to_dict(self, report_service, fixed_now) -> None:
        report = await report_service.get_student_progress("u3", now=fixed_now)

        payload = report.to_dict()

        assert payload["student"] == {
            "id": "u3",
            "name": "carol@example.com",
            "email": "carol@example.com",
        }
        assert payload["best_game"] == {
            "game_type": "Game3",
            "game_name": "量词贪吃蛇",
            "score": 2500,
        }
        assert payload["recent_games"][0]["timestamp"] == "2025-03-10T10:00:00+00:00"

    @pytest.mark.asyncio
    async def test_from_settings(self, store, registry, fixed_now) -> None:
        settings = Settings(reports=ReportSettings(trend_days=3, recent_games_limit=1))
        service = ReportService.from_settings(store, settings, registry)

        report = await service.get_student_progress("u1", now=fixed_now)

        assert len(report.game_stats["Game1"].play_history) == 3
        assert len(report.recent_games) == 1


class TestStudentErrorTrends:
    """Tests for get_student_error_trends."""

    @pytest.mark.asyncio
    async def test_thirty_day_series(self, report_service, fixed_now) -> None:
        trends = await report_service.get_student_error_trends("u1", days=30, now=fixed_now)

        assert trends.start == date(2025, 2, 8)
        assert trends.end == date(2025, 3, 10)
        assert len(trends.labels) == 30
        assert trends.labels[-1] == "2025-03-10"
        assert len(trends.data) == 30
        assert sum(trends.data) == 16

    @pytest.mark.asyncio
    async def test_daily_totals(self, report_service, fixed_now) -> None:
        trends = await report_service.get_student_error_trends("u1", now=fixed_now)

        assert list(trends.daily_errors) == ["2025-03-08", "2025-03-10"]
        assert trends.daily_errors["2025-03-08"].by_knowledge_point == {"3": 6}
        assert trends.daily_errors["2025-03-10"].total == 10
        assert trends.daily_errors["2025-03-10"].by_knowledge_point == {"个": 8, "本": 2}

    @pytest.mark.asyncio
    async def test_window_excludes_older_tallies(self, report_service, fixed_now) -> None:
        trends = await report_service.get_student_error_trends("u1", days=1, now=fixed_now)

        assert trends.labels == ["2025-03-10"]
        assert trends.data == [10]
        assert list(trends.daily_errors) == ["2025-03-10"]

    @pytest.mark.asyncio
    async def test_concentration_included(self, report_service, fixed_now) -> None:
        trends = await report_service.get_student_error_trends("u1", now=fixed_now)

        points = [point.knowledge_point for point in trends.error_concentration.knowledge_points]
        assert points == ["个", "3", "本"]

    @pytest.mark.asyncio
    async def test_student_without_tallies(self, report_service, fixed_now) -> None:
        trends = await report_service.get_student_error_trends("u3", days=7, now=fixed_now)

        assert trends.daily_errors == {}
        assert trends.data == [0] * 7
        payload = trends.to_dict()
        assert payload["date_range"] == {"start": "2025-03-03", "end": "2025-03-10"}
        assert payload["time_series"]["labels"][0] == "2025-03-04"


class TestOrphanedRecords:
    """Tests for records whose owner was deleted."""

    @pytest.mark.asyncio
    async def test_orphan_counted_once(self, registry, fixed_now) -> None:
        store = InMemoryRecordStore(
            {
                PLAY_RECORDS: {
                    "a": play("gone1", "Game3", 1, 100, at(9)),
                    "b": play("gone2", "Game3", 1, 200, at(10)),
                }
            }
        )
        service = ReportService(store, registry)

        stats = await service.get_global_progress(now=fixed_now)

        assert stats.total_play_count == 2
        assert stats.total_students == 1
        assert {record.user_name for record in stats.raw_data} == {"Unknown User"}
