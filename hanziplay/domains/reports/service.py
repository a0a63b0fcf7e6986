# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Report service for the teacher dashboard.

This module provides the ReportService class, the single entry point
the API uses for reports:
- Global progress across students and games
- Global or per-student error patterns
- A single student's progress across games
- A single student's error trend over a longer window
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, cast

from hanziplay.core.config.settings import Settings
from hanziplay.domains.games.reducers import GameStats
from hanziplay.domains.games.registry import GameDescriptor, GameRegistry, get_game_registry
from hanziplay.domains.records.fetcher import RawRecordFetcher
from hanziplay.domains.records.service import GameRecordService
from hanziplay.domains.reports.aggregator import (
    GlobalAggregator,
    GlobalStats,
    ProgressFilters,
    TrendPoint,
    build_trend,
)
from hanziplay.domains.reports.error_patterns import (
    ErrorAnalysis,
    ErrorConcentration,
    ErrorFilters,
    ErrorPatternAnalyzer,
    ErrorTypeDistribution,
    StudentErrorAnalysis,
)
from hanziplay.domains.students.service import StudentService
from hanziplay.infrastructure.store.base import RecordStore
from hanziplay.models.records import PlayRecord
from hanziplay.models.users import StudentProfile
from hanziplay.utils.datetime import day_key, format_iso, local_date, trailing_days, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Student progress
# =============================================================================


@dataclass
class StudentGameProgress:
    """One student's progress in one game.

    Attributes:
        game_type: Game identifier.
        game_name: Display name.
        stats: Reduced game stats.
        play_history: Daily plays over the trailing days, oldest first.
        avg_score: Mean score over all records.
        completion_rate: Share of completed records.
        raw_records: The student's records, newest first.
    """

    game_type: str
    game_name: str
    stats: GameStats
    play_history: list[TrendPoint] = field(default_factory=list)
    avg_score: float = 0.0
    completion_rate: float = 0.0
    raw_records: list[PlayRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "game_type": self.game_type,
            "game_name": self.game_name,
            "stats": self.stats.to_dict(),
            "play_history": [point.to_dict() for point in self.play_history],
            "avg_score": self.avg_score,
            "completion_rate": self.completion_rate,
            "raw_records": [
                {
                    "id": record.id,
                    "level": record.level,
                    "score": record.score,
                    "is_completed": record.is_completed,
                    "timestamp": format_iso(record.timestamp),
                }
                for record in self.raw_records
            ],
        }


@dataclass
class RecentGame:
    """One play in a student's recent activity."""

    game_type: str
    game_name: str
    timestamp: datetime
    level: int
    score: int
    completed: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "game_type": self.game_type,
            "game_name": self.game_name,
            "timestamp": format_iso(self.timestamp),
            "level": self.level,
            "score": self.score,
            "completed": self.completed,
        }


@dataclass
class BestGame:
    """The game a student scores best in."""

    game_type: str
    game_name: str
    score: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"game_type": self.game_type, "game_name": self.game_name, "score": self.score}


@dataclass
class StudentProgressReport:
    """A student's progress across all games.

    Attributes:
        student: The student.
        game_stats: Progress per game, in registry order.
        best_game: Game with the highest best score, None without plays.
        recent_games: Most recent plays across games, newest first.
    """

    student: StudentProfile
    game_stats: dict[str, StudentGameProgress] = field(default_factory=dict)
    best_game: BestGame | None = None
    recent_games: list[RecentGame] = field(default_factory=list)

    @property
    def total_play_count(self) -> int:
        return sum(progress.stats.play_count for progress in self.game_stats.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student": {
                "id": self.student.id,
                "name": self.student.display_name,
                "email": self.student.email,
            },
            "total_play_count": self.total_play_count,
            "game_stats": {
                game_type: progress.to_dict() for game_type, progress in self.game_stats.items()
            },
            "best_game": self.best_game.to_dict() if self.best_game else None,
            "recent_games": [game.to_dict() for game in self.recent_games],
        }


# =============================================================================
# Student error trends
# =============================================================================


@dataclass
class DailyErrorTotals:
    """A student's errors on one day."""

    total: int = 0
    by_knowledge_point: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"total": self.total, "by_knowledge_point": self.by_knowledge_point}


@dataclass
class StudentErrorTrends:
    """A student's errors over a trailing window.

    Attributes:
        student_id: Student ID.
        start: First day of the window.
        end: Last day of the window.
        daily_errors: Totals per day with errors, keyed ``YYYY-MM-DD``.
        labels: Every day of the series, oldest first.
        data: Error totals matching ``labels``.
        error_type_distribution: The student's ranked wrong answers per game.
        error_concentration: The student's knowledge points ranked by errors.
    """

    student_id: str
    start: date
    end: date
    daily_errors: dict[str, DailyErrorTotals] = field(default_factory=dict)
    labels: list[str] = field(default_factory=list)
    data: list[int] = field(default_factory=list)
    error_type_distribution: list[ErrorTypeDistribution] = field(default_factory=list)
    error_concentration: ErrorConcentration = field(default_factory=ErrorConcentration)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "date_range": {"start": self.start.isoformat(), "end": self.end.isoformat()},
            "daily_errors": {day: totals.to_dict() for day, totals in self.daily_errors.items()},
            "time_series": {"labels": self.labels, "data": self.data},
            "error_type_distribution": [
                distribution.to_dict() for distribution in self.error_type_distribution
            ],
            "error_concentration": self.error_concentration.to_dict(),
        }


# =============================================================================
# Service
# =============================================================================


class ReportService:
    """Service building dashboard reports.

    Attributes:
        _registry: Game registry.
        _aggregator: Global progress aggregator.
        _analyzer: Error pattern analyzer.
        _records: Game record service.
        _students: Student service.
        _tz: Timezone for day bucketing.
        _trend_days: Number of points in daily series.
        _recent_games_limit: Plays listed as recent activity.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: GameRegistry | None = None,
        tz: tzinfo = timezone.utc,
        trend_days: int = 7,
        raw_data_limit: int = 100,
        error_query_limit: int = 100,
        recent_games_limit: int = 10,
        unknown_user_label: str = "Unknown User",
    ) -> None:
        """Initialize report service.

        Args:
            store: Document store.
            registry: Game registry (defaults to the built-in games).
            tz: Timezone for day bucketing.
            trend_days: Number of trailing days in trends.
            raw_data_limit: Raw records returned with global progress.
            error_query_limit: Row cap for unfiltered error queries.
            recent_games_limit: Plays listed in a student report.
            unknown_user_label: Name shown for missing users.
        """
        self._registry = registry if registry is not None else get_game_registry()
        self._tz = tz
        self._trend_days = trend_days
        self._recent_games_limit = recent_games_limit

        fetcher = RawRecordFetcher(store, self._registry, unknown_user_label)
        self._aggregator = GlobalAggregator(
            fetcher,
            self._registry,
            tz=tz,
            trend_days=trend_days,
            raw_data_limit=raw_data_limit,
        )
        self._analyzer = ErrorPatternAnalyzer(
            store,
            self._registry,
            tz=tz,
            trend_days=trend_days,
            default_limit=error_query_limit,
        )
        self._records = GameRecordService(store, self._registry, fetcher)
        self._students = StudentService(store)

    @classmethod
    def from_settings(
        cls,
        store: RecordStore,
        settings: Settings,
        registry: GameRegistry | None = None,
    ) -> "ReportService":
        """Create a report service configured from settings."""
        reports = settings.reports
        return cls(
            store,
            registry,
            tz=reports.tzinfo,
            trend_days=reports.trend_days,
            raw_data_limit=reports.raw_data_limit,
            error_query_limit=reports.error_query_limit,
            recent_games_limit=reports.recent_games_limit,
            unknown_user_label=reports.unknown_user_label,
        )

    async def get_global_progress(
        self,
        filters: ProgressFilters | None = None,
        now: datetime | None = None,
    ) -> GlobalStats:
        """Build the global progress report.

        Raises:
            InvalidGameTypeError: If the game filter names an unknown game.
            StoreUnavailableError: If a record query fails.
        """
        return await self._aggregator.aggregate_global(filters, now=now)

    async def get_error_patterns(
        self,
        filters: ErrorFilters | None = None,
        now: datetime | None = None,
    ) -> ErrorAnalysis:
        """Build the error pattern analysis.

        Raises:
            InvalidGameTypeError: If the game filter names an unknown game.
            StoreUnavailableError: If the tally query fails.
        """
        return await self._analyzer.analyze_errors(filters, now=now)

    async def get_student_progress(
        self,
        student_id: str,
        now: datetime | None = None,
    ) -> StudentProgressReport:
        """Build a student's progress report across all games.

        Args:
            student_id: Student ID.
            now: Reference instant for play histories.

        Returns:
            StudentProgressReport.

        Raises:
            StudentNotFoundError: If the student does not exist.
            StoreUnavailableError: If a query fails.
        """
        now = now or utc_now()
        student = await self._students.require_student(student_id)

        descriptors = list(self._registry)
        record_sets = await asyncio.gather(
            *(
                self._records.get_student_records(student_id, descriptor.game_type)
                for descriptor in descriptors
            )
        )

        report = StudentProgressReport(student=student)
        recent: list[RecentGame] = []

        for descriptor, records in zip(descriptors, record_sets):
            records = sorted(records, key=lambda record: record.timestamp, reverse=True)
            progress = self._game_progress(descriptor, records, now)
            report.game_stats[progress.game_type] = progress

            recent.extend(
                RecentGame(
                    game_type=progress.game_type,
                    game_name=progress.game_name,
                    timestamp=record.timestamp,
                    level=record.level,
                    score=record.score,
                    completed=record.is_completed,
                )
                for record in records
            )

            if records and (
                report.best_game is None or progress.stats.best_score > report.best_game.score
            ):
                report.best_game = BestGame(
                    game_type=progress.game_type,
                    game_name=progress.game_name,
                    score=progress.stats.best_score,
                )

        recent.sort(key=lambda game: game.timestamp, reverse=True)
        report.recent_games = recent[: self._recent_games_limit]

        logger.info(
            "Built student progress: student_id=%s, plays=%d",
            student_id,
            report.total_play_count,
        )
        return report

    def _game_progress(
        self,
        descriptor: GameDescriptor,
        records: list[PlayRecord],
        now: datetime,
    ) -> StudentGameProgress:
        scores = [record.score for record in records]
        completed = sum(1 for record in records if record.is_completed)

        return StudentGameProgress(
            game_type=descriptor.game_type.value,
            game_name=descriptor.display_name,
            stats=descriptor.reduce(records),
            play_history=build_trend(records, now, self._trend_days, self._tz),
            avg_score=sum(scores) / len(scores) if scores else 0.0,
            completion_rate=completed / len(records) if records else 0.0,
            raw_records=records,
        )

    async def get_student_error_trends(
        self,
        student_id: str,
        days: int = 30,
        now: datetime | None = None,
    ) -> StudentErrorTrends:
        """Build a student's daily error series over the trailing days.

        Errors are dated by their tally's last update.

        Args:
            student_id: Student ID.
            days: Window length in days.
            now: Reference instant (defaults to the current time).

        Returns:
            StudentErrorTrends.

        Raises:
            StoreUnavailableError: If the tally query fails.
        """
        now = now or utc_now()
        start = now - timedelta(days=days)

        # A student filter always selects the single-student view
        analysis = cast(
            StudentErrorAnalysis,
            await self._analyzer.analyze_errors(
                ErrorFilters(
                    student_id=student_id,
                    start_date=start,
                    order_by="LastUpdated",
                    descending=False,
                ),
                now=now,
            ),
        )

        daily: dict[str, DailyErrorTotals] = defaultdict(DailyErrorTotals)
        for entry in analysis.raw_data:
            if entry.last_updated is None:
                continue
            totals = daily[day_key(entry.last_updated, self._tz)]
            totals.total += entry.error_count
            totals.by_knowledge_point[entry.knowledge_point] = (
                totals.by_knowledge_point.get(entry.knowledge_point, 0) + entry.error_count
            )

        labels = [day.isoformat() for day in trailing_days(now, days, self._tz)]

        return StudentErrorTrends(
            student_id=student_id,
            start=local_date(start, self._tz),
            end=local_date(now, self._tz),
            daily_errors=dict(sorted(daily.items())),
            labels=labels,
            data=[daily[label].total if label in daily else 0 for label in labels],
            error_type_distribution=analysis.error_type_distribution,
            error_concentration=self._analyzer.error_concentration(analysis.raw_data),
        )
