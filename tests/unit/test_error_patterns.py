# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for wrong-answer pattern analysis."""

from datetime import date
from unittest.mock import AsyncMock

import pytest
from factories import answer, at

from hanziplay.domains.games import InvalidGameTypeError
from hanziplay.domains.reports import (
    ErrorFilters,
    ErrorPatternAnalyzer,
    GlobalErrorAnalysis,
    StudentErrorAnalysis,
    difficulty_level,
    percentage,
)
from hanziplay.domains.reports.error_patterns import flatten_tally, parse_tally
from hanziplay.infrastructure.store import (
    ERROR_TALLIES,
    Document,
    InMemoryRecordStore,
    OrderBy,
    RecordStore,
    StoreUnavailableError,
)
from hanziplay.models.tallies import ErrorTally
from hanziplay.utils.folding import Skip


@pytest.fixture
def analyzer(store, registry) -> ErrorPatternAnalyzer:
    """Create an analyzer over the seeded store."""
    return ErrorPatternAnalyzer(store, registry)


def distribution_by_game(analysis) -> dict:
    return {entry.game_type: entry for entry in analysis.error_type_distribution}


class TestPercentage:
    """Tests for percentage rounding."""

    @pytest.mark.parametrize(
        "part,total,expected",
        [(1, 8, 13), (1, 3, 33), (2, 3, 67), (1, 2, 50), (0, 5, 0), (3, 0, 0)],
    )
    def test_rounds_half_up(self, part, total, expected) -> None:
        assert percentage(part, total) == expected


class TestDifficultyLevel:
    """Tests for difficulty tiers."""

    @pytest.mark.parametrize(
        "count,max_count,expected",
        [(10, 10, "high"), (7, 10, "high"), (3, 10, "medium"), (2, 10, "low"), (0, 0, "low")],
    )
    def test_tiers(self, count, max_count, expected) -> None:
        assert difficulty_level(count, max_count) == expected


class TestNormalization:
    """Tests for tally parsing and flattening."""

    def test_tally_without_owner_skipped(self) -> None:
        outcome = parse_tally(Document("e4", {"GameId": "Game3", "ErrorAnswers": {}}))

        assert isinstance(outcome, Skip)
        assert outcome.source == "e4"

    def test_malformed_counter_skipped_alone(self) -> None:
        tally = ErrorTally(
            id="e9",
            user_id="u1",
            game_id="Game3",
            last_updated=at(10),
            error_answers={
                "a": answer("个", "只", 2, at(10)),
                "b": {"KnowledgePoint": "个"},
                "c": "not a counter",
            },
        )

        outcomes = flatten_tally(tally)

        skips = [outcome for outcome in outcomes if isinstance(outcome, Skip)]
        entries = [outcome for outcome in outcomes if not isinstance(outcome, Skip)]
        assert [skip.source for skip in skips] == ["e9/b", "e9/c"]
        assert len(entries) == 1
        assert entries[0].last_updated == at(10)

    def test_entry_falls_back_to_tally_time(self) -> None:
        tally = ErrorTally(
            id="e9",
            user_id="u1",
            game_id="Game3",
            last_updated=at(9),
            error_answers={"a": answer("条", "根", 1, None)},
        )

        (entry,) = flatten_tally(tally)

        assert entry.occurred_at == at(9)


class TestGlobalAnalysis:
    """Tests for the cross-student view."""

    @pytest.mark.asyncio
    async def test_global_view_selected(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        assert isinstance(analysis, GlobalErrorAnalysis)
        assert analysis.to_dict()["view"] == "global"

    @pytest.mark.asyncio
    async def test_malformed_rows_counted(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        # e4 has no owner and e3 has a counter without a wrong answer
        assert analysis.total_records == 3
        assert analysis.skipped == 2

    @pytest.mark.asyncio
    async def test_distribution_ranked(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        assert [entry.game_type for entry in analysis.error_type_distribution] == ["Game1", "Game3"]

        game3 = distribution_by_game(analysis)["Game3"]
        assert game3.game_name == "量词贪吃蛇"
        assert game3.total_errors == 15
        assert game3.sample_count == 2
        assert [(share.wrong_answer, share.count, share.percentage) for share in game3.error_patterns] == [
            ("只", 9, 60),
            ("条", 3, 20),
            ("张", 2, 13),
            ("根", 1, 7),
        ]
        assert game3.error_patterns[2].knowledge_points == ["本"]

    @pytest.mark.asyncio
    async def test_percentages_sum_near_100(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        for entry in analysis.error_type_distribution:
            total = sum(share.percentage for share in entry.error_patterns)
            assert abs(total - 100) <= len(entry.error_patterns)

    @pytest.mark.asyncio
    async def test_numeric_knowledge_point(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        game1 = distribution_by_game(analysis)["Game1"]
        assert game1.total_errors == 6
        assert game1.error_patterns[0].knowledge_points == ["3"]
        assert game1.error_patterns[0].percentage == 100

    @pytest.mark.asyncio
    async def test_frequency_trend(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        trend = {day.date: day for day in analysis.error_frequency_trend}
        assert list(trend) == [
            "2025-03-04",
            "2025-03-05",
            "2025-03-06",
            "2025-03-07",
            "2025-03-08",
            "2025-03-09",
            "2025-03-10",
        ]
        assert trend["2025-03-04"].games == []
        assert trend["2025-03-08"].games[0].game_type == "Game1"
        assert trend["2025-03-08"].total_errors == 6
        assert trend["2025-03-09"].total_errors == 8
        assert trend["2025-03-09"].games[0].top_wrong_answers == ["只", "条", "根"]
        assert trend["2025-03-10"].total_errors == 7
        assert trend["2025-03-10"].games[0].top_wrong_answers == ["只", "张"]

    @pytest.mark.asyncio
    async def test_trend_ignores_days_outside_window(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=at(20))

        trend = analysis.error_frequency_trend
        assert trend[0].date == "2025-03-14"
        assert len(trend) == 7
        assert all(day.games == [] for day in trend)

    @pytest.mark.asyncio
    async def test_trend_has_every_day_when_errors_fall_on_one(self, registry, fixed_now) -> None:
        store = InMemoryRecordStore(
            {
                ERROR_TALLIES: {
                    "t": {
                        "UserId": "u1",
                        "GameId": "Game3",
                        "LastUpdated": at(10),
                        "ErrorAnswers": {"a": answer("个", "只", 2, at(10))},
                    }
                }
            }
        )
        analyzer = ErrorPatternAnalyzer(store, registry)

        analysis = await analyzer.analyze_errors(now=fixed_now)

        trend = analysis.error_frequency_trend
        assert [day.date for day in trend] == [
            "2025-03-04",
            "2025-03-05",
            "2025-03-06",
            "2025-03-07",
            "2025-03-08",
            "2025-03-09",
            "2025-03-10",
        ]
        assert [day.total_errors for day in trend] == [0, 0, 0, 0, 0, 0, 2]
        assert trend[-1].games[0].top_wrong_answers == ["只"]
        assert analysis.to_dict()["error_frequency_trend"][0] == {
            "date": "2025-03-04",
            "total_errors": 0,
            "games": [],
        }

    @pytest.mark.asyncio
    async def test_concentration(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        concentration = analysis.error_concentration
        points = {point.knowledge_point: point for point in concentration.knowledge_points}
        assert [point.knowledge_point for point in concentration.knowledge_points] == [
            "个",
            "3",
            "本",
            "条",
        ]
        assert points["个"].error_count == 12
        assert points["个"].student_count == 2
        assert points["个"].game_count == 1
        assert points["个"].difficulty_score == pytest.approx(6.0)
        assert points["个"].difficulty_level == "high"
        assert [(a.answer, a.count, a.percentage) for a in points["个"].top_wrong_answers] == [
            ("只", 9, 75),
            ("条", 3, 25),
        ]
        assert points["3"].difficulty_level == "medium"
        assert points["本"].difficulty_level == "low"
        assert concentration.total_errors == 21
        assert concentration.difficulty_groups == {"high": 1, "medium": 1, "low": 2}

    @pytest.mark.asyncio
    async def test_to_dict_top_n(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(now=fixed_now)

        payload = analysis.to_dict(top_n=2)

        game3 = next(d for d in payload["error_type_distribution"] if d["game_type"] == "Game3")
        assert len(game3["error_patterns"]) == 2
        assert game3["total_errors"] == 15
        assert len(distribution_by_game(analysis)["Game3"].error_patterns) == 4


class TestFilters:
    """Tests for query filters."""

    @pytest.mark.asyncio
    async def test_game_filter(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(ErrorFilters(game_type="Game1"), now=fixed_now)

        assert analysis.total_records == 1
        assert list(distribution_by_game(analysis)) == ["Game1"]

    @pytest.mark.asyncio
    async def test_filters_match_full_path_and_mapping_references(
        self, registry, fixed_now
    ) -> None:
        store = InMemoryRecordStore(
            {
                ERROR_TALLIES: {
                    "t1": {
                        "UserId": {"id": "u1"},
                        "GameId": "projects/p/databases/(default)/documents/games/Game1",
                        "LastUpdated": at(10),
                        "ErrorAnswers": {"a": answer("个", "只", 2, at(10))},
                    },
                    "t2": {
                        "UserId": "projects/p/databases/(default)/documents/users/u2",
                        "GameId": {"id": "Game3"},
                        "LastUpdated": at(10),
                        "ErrorAnswers": {"a": answer("条", "根", 1, at(10))},
                    },
                }
            }
        )
        analyzer = ErrorPatternAnalyzer(store, registry)

        unfiltered = await analyzer.analyze_errors(now=fixed_now)
        by_game = await analyzer.analyze_errors(ErrorFilters(game_type="Game1"), now=fixed_now)
        by_student = await analyzer.analyze_errors(ErrorFilters(student_id="u2"), now=fixed_now)

        assert unfiltered.total_records == 2
        assert by_game.total_records == 1
        assert list(distribution_by_game(by_game)) == ["Game1"]
        assert by_student.total_records == 1
        assert [entry.tally_id for entry in by_student.raw_data] == ["t2"]

    @pytest.mark.asyncio
    async def test_unknown_game_filter(self, analyzer, fixed_now) -> None:
        with pytest.raises(InvalidGameTypeError):
            await analyzer.analyze_errors(ErrorFilters(game_type="Game9"), now=fixed_now)

    @pytest.mark.asyncio
    async def test_start_date(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(
            ErrorFilters(start_date=date(2025, 3, 9)), now=fixed_now
        )

        assert analysis.total_records == 2
        assert analysis.skipped == 1

    @pytest.mark.asyncio
    async def test_end_date_inclusive(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(
            ErrorFilters(end_date=date(2025, 3, 8)), now=fixed_now
        )

        assert analysis.total_records == 1
        assert list(distribution_by_game(analysis)) == ["Game1"]

    @pytest.mark.asyncio
    async def test_explicit_limit_and_order(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(
            ErrorFilters(order_by="LastUpdated", descending=False, limit=1), now=fixed_now
        )

        assert analysis.total_records == 1
        assert list(distribution_by_game(analysis)) == ["Game1"]

    @pytest.mark.asyncio
    async def test_default_limit_without_filters(self, fixed_now) -> None:
        store = AsyncMock(spec=RecordStore)
        store.query.return_value = []
        analyzer = ErrorPatternAnalyzer(store, default_limit=50)

        await analyzer.analyze_errors(now=fixed_now)

        store.query.assert_awaited_once_with(
            ERROR_TALLIES,
            [],
            order_by=OrderBy("LastUpdated", descending=True),
            limit=50,
        )

    @pytest.mark.asyncio
    async def test_no_default_limit_with_game_filter(self, fixed_now) -> None:
        store = AsyncMock(spec=RecordStore)
        store.query.return_value = []
        analyzer = ErrorPatternAnalyzer(store, default_limit=50)

        await analyzer.analyze_errors(ErrorFilters(game_type="Game3"), now=fixed_now)

        assert store.query.await_args.kwargs["limit"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "filters",
        [
            ErrorFilters(start_date=date(2025, 2, 10)),
            ErrorFilters(end_date=date(2025, 3, 10)),
        ],
    )
    async def test_no_default_limit_with_date_range(self, filters, fixed_now) -> None:
        store = AsyncMock(spec=RecordStore)
        store.query.return_value = []
        analyzer = ErrorPatternAnalyzer(store, default_limit=50)

        await analyzer.analyze_errors(filters, now=fixed_now)

        assert store.query.await_args.kwargs["limit"] is None
        assert store.query.await_args.kwargs["order_by"] is None

    @pytest.mark.asyncio
    async def test_date_range_reads_past_default_limit(self, registry, fixed_now) -> None:
        tallies = {
            f"t{index}": {
                "UserId": "u1",
                "GameId": "Game3",
                "LastUpdated": at(1 + index),
                "ErrorAnswers": {"a": answer("个", "只", 1, at(1 + index))},
            }
            for index in range(5)
        }
        analyzer = ErrorPatternAnalyzer(
            InMemoryRecordStore({ERROR_TALLIES: tallies}), registry, default_limit=2
        )

        capped = await analyzer.analyze_errors(now=fixed_now)
        ranged = await analyzer.analyze_errors(
            ErrorFilters(start_date=date(2025, 3, 1)), now=fixed_now
        )

        assert capped.total_records == 2
        assert ranged.total_records == 5

    @pytest.mark.asyncio
    async def test_query_failure_propagates(self, fixed_now) -> None:
        store = AsyncMock(spec=RecordStore)
        store.query.side_effect = StoreUnavailableError("Query failed")
        analyzer = ErrorPatternAnalyzer(store)

        with pytest.raises(StoreUnavailableError):
            await analyzer.analyze_errors(now=fixed_now)


class TestStudentAnalysis:
    """Tests for the single-student view."""

    @pytest.mark.asyncio
    async def test_student_view_selected(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(ErrorFilters(student_id="u1"), now=fixed_now)

        assert isinstance(analysis, StudentErrorAnalysis)
        assert analysis.student_id == "u1"
        assert analysis.to_dict()["view"] == "student"

    @pytest.mark.asyncio
    async def test_matches_path_references(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(ErrorFilters(student_id="u1"), now=fixed_now)

        assert analysis.total_records == 2
        assert analysis.skipped == 1
        assert {entry.tally_id for entry in analysis.raw_data} == {"e1", "e3"}

    @pytest.mark.asyncio
    async def test_knowledge_point_analysis(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(ErrorFilters(student_id="u1"), now=fixed_now)

        summaries = analysis.knowledge_point_analysis
        assert [summary.knowledge_point for summary in summaries] == ["个", "3", "本"]
        assert summaries[0].total_errors == 8
        assert summaries[0].last_attempt_time == at(10)
        assert [(a.answer, a.percentage) for a in summaries[0].wrong_answers] == [
            ("只", 63),
            ("条", 38),
        ]
        assert analysis.total_error_count == 16

    @pytest.mark.asyncio
    async def test_student_distribution(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(ErrorFilters(student_id="u1"), now=fixed_now)

        game3 = distribution_by_game(analysis)["Game3"]
        assert [(share.wrong_answer, share.percentage) for share in game3.error_patterns] == [
            ("只", 50),
            ("条", 30),
            ("张", 20),
        ]

    @pytest.mark.asyncio
    async def test_student_without_tallies(self, analyzer, fixed_now) -> None:
        analysis = await analyzer.analyze_errors(ErrorFilters(student_id="u3"), now=fixed_now)

        assert analysis.total_records == 0
        assert analysis.raw_data == []
        assert analysis.knowledge_point_analysis == []
        assert analysis.total_error_count == 0
        assert analysis.error_type_distribution == []
        assert analysis.error_frequency_trend == []


class TestEmptyStore:
    """Tests for analysis without any tallies."""

    @pytest.mark.asyncio
    async def test_empty_lists(self, empty_store: InMemoryRecordStore, registry, fixed_now) -> None:
        analyzer = ErrorPatternAnalyzer(empty_store, registry)

        analysis = await analyzer.analyze_errors(now=fixed_now)

        assert analysis.total_records == 0
        assert analysis.skipped == 0
        assert analysis.error_type_distribution == []
        assert analysis.error_frequency_trend == []
        assert analysis.error_concentration.knowledge_points == []
        assert analysis.to_dict()["error_concentration"]["difficulty_groups"] == {
            "high": 0,
            "medium": 0,
            "low": 0,
        }

    @pytest.mark.asyncio
    async def test_zero_count_game_omitted(self, registry, fixed_now) -> None:
        store = InMemoryRecordStore(
            {
                ERROR_TALLIES: {
                    "z": {
                        "UserId": "u1",
                        "GameId": "Game3",
                        "LastUpdated": at(10),
                        "ErrorAnswers": {"a": answer("个", "只", 0, at(10))},
                    }
                }
            }
        )
        analyzer = ErrorPatternAnalyzer(store, registry)

        analysis = await analyzer.analyze_errors(now=fixed_now)

        assert analysis.total_records == 1
        assert analysis.error_type_distribution == []
        assert len(analysis.error_frequency_trend) == 7
        assert all(day.games == [] for day in analysis.error_frequency_trend)
