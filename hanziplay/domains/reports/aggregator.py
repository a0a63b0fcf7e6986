# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-student, cross-game progress aggregation.

This module provides the GlobalAggregator, which merges the raw records
of every selected game into one report:
- Overall play and student counts
- Per-game stats (scores, completion rate, score histogram)
- Per-game daily trend over the trailing days
- The newest raw records

Usage:
    from hanziplay.domains.reports import GlobalAggregator, ProgressFilters

    aggregator = GlobalAggregator(fetcher)
    stats = await aggregator.aggregate_global(ProgressFilters(game_type="Game3"))
    payload = stats.to_dict()
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Any

from hanziplay.domains.games.registry import GameDescriptor, GameRegistry, get_game_registry
from hanziplay.domains.records.fetcher import RawRecordFetcher
from hanziplay.models.records import PlayRecord, ResolvedPlayRecord
from hanziplay.utils.datetime import as_lower_bound, as_upper_bound, day_key, trailing_days, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ProgressFilters:
    """Filters for the global progress report.

    Attributes:
        game_type: Restrict to one game.
        start_date: Earliest record time, inclusive. A date covers its whole day.
        end_date: Latest record time, inclusive. A date covers its whole day.
    """

    game_type: str | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None


@dataclass
class GameTypeStats:
    """Aggregate stats of one game.

    Attributes:
        game_type: Game identifier.
        game_name: Display name.
        play_count: Number of records.
        avg_score: Mean score, 0.0 when there are no records.
        highest_score: Best score, None when there are no records.
        lowest_score: Worst score, None when there are no records.
        completion_rate: Share of completed records, 0.0 when there are none.
        unique_students: Distinct resolved user names.
        score_distribution: Histogram counts, None for games without buckets.
    """

    game_type: str
    game_name: str
    play_count: int = 0
    avg_score: float = 0.0
    highest_score: int | None = None
    lowest_score: int | None = None
    completion_rate: float = 0.0
    unique_students: int = 0
    score_distribution: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "game_type": self.game_type,
            "game_name": self.game_name,
            "play_count": self.play_count,
            "avg_score": self.avg_score,
            "highest_score": self.highest_score,
            "lowest_score": self.lowest_score,
            "completion_rate": self.completion_rate,
            "unique_students": self.unique_students,
        }
        if self.score_distribution is not None:
            result["score_distribution"] = self.score_distribution
        return result


@dataclass
class TrendPoint:
    """One day of a game's trend."""

    date: str
    play_count: int = 0
    avg_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "date": self.date,
            "play_count": self.play_count,
            "avg_score": self.avg_score,
        }


@dataclass
class GlobalStats:
    """Global progress report.

    Attributes:
        total_play_count: Records after filtering.
        total_students: Distinct resolved user names after filtering.
        game_type_stats: One entry per selected game, in registry order.
        trends_by_game_type: Daily trend per selected game, oldest day first.
        raw_data: Newest records, capped.
    """

    total_play_count: int = 0
    total_students: int = 0
    game_type_stats: list[GameTypeStats] = field(default_factory=list)
    trends_by_game_type: dict[str, list[TrendPoint]] = field(default_factory=dict)
    raw_data: list[ResolvedPlayRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_play_count": self.total_play_count,
            "total_students": self.total_students,
            "game_type_stats": [stats.to_dict() for stats in self.game_type_stats],
            "trends_by_game_type": {
                game_type: [point.to_dict() for point in points]
                for game_type, points in self.trends_by_game_type.items()
            },
            "raw_data": [record.to_dict() for record in self.raw_data],
        }


def _mean(values: list[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def summarize_game(
    descriptor: GameDescriptor,
    records: list[ResolvedPlayRecord],
) -> GameTypeStats:
    """Compute aggregate stats for one game's records.

    Args:
        descriptor: The game's registry entry.
        records: The game's records (may be empty).

    Returns:
        GameTypeStats; empty input yields zero rates and no extremes.
    """
    scores = [record.score for record in records]
    completed = sum(1 for record in records if record.is_completed)

    return GameTypeStats(
        game_type=descriptor.game_type.value,
        game_name=descriptor.display_name,
        play_count=len(records),
        avg_score=_mean(scores),
        highest_score=max(scores) if scores else None,
        lowest_score=min(scores) if scores else None,
        completion_rate=completed / len(records) if records else 0.0,
        unique_students=len({record.user_name for record in records}),
        score_distribution=descriptor.score_distribution(scores),
    )


def build_trend(
    records: list[PlayRecord],
    now: datetime,
    days: int,
    tz: tzinfo = timezone.utc,
) -> list[TrendPoint]:
    """Bucket records into the trailing calendar days ending on ``now``.

    Args:
        records: Records of a single game (or of one student in one game).
        now: Reference instant; its day is the last point.
        days: Number of points.
        tz: Timezone whose calendar defines the days.

    Returns:
        Exactly ``days`` points, oldest first. Empty days have zero counts.
    """
    scores_by_day: dict[str, list[int]] = defaultdict(list)
    for record in records:
        scores_by_day[day_key(record.timestamp, tz)].append(record.score)

    points = []
    for day in trailing_days(now, days, tz):
        key = day.isoformat()
        scores = scores_by_day.get(key, [])
        points.append(TrendPoint(date=key, play_count=len(scores), avg_score=_mean(scores)))
    return points


class GlobalAggregator:
    """Builds the global progress report.

    Attributes:
        _fetcher: Raw record fetcher.
        _registry: Game registry; defines the games and their order.
        _tz: Timezone for day bucketing.
        _trend_days: Number of points in each trend.
        _raw_data_limit: Maximum raw records returned.
    """

    def __init__(
        self,
        fetcher: RawRecordFetcher,
        registry: GameRegistry | None = None,
        tz: tzinfo = timezone.utc,
        trend_days: int = 7,
        raw_data_limit: int = 100,
    ) -> None:
        """Initialize the aggregator.

        Args:
            fetcher: Raw record fetcher.
            registry: Game registry (defaults to the built-in games).
            tz: Timezone for day bucketing and bare-date bounds.
            trend_days: Number of trailing days in each trend.
            raw_data_limit: Maximum raw records returned.
        """
        self._fetcher = fetcher
        self._registry = registry if registry is not None else get_game_registry()
        self._tz = tz
        self._trend_days = trend_days
        self._raw_data_limit = raw_data_limit

    async def aggregate_global(
        self,
        filters: ProgressFilters | None = None,
        now: datetime | None = None,
    ) -> GlobalStats:
        """Aggregate records of all selected games.

        Args:
            filters: Optional game and date filters.
            now: Reference instant for trends (defaults to the current time).

        Returns:
            GlobalStats for the selected games.

        Raises:
            InvalidGameTypeError: If the game filter names an unknown game.
            StoreUnavailableError: If a record query fails.
        """
        filters = filters or ProgressFilters()
        now = now or utc_now()

        if filters.game_type:
            selected = [self._registry.get(filters.game_type)]
        else:
            selected = list(self._registry)

        fetched = await asyncio.gather(
            *(self._fetcher.fetch_records(descriptor.game_type) for descriptor in selected)
        )

        lower = as_lower_bound(filters.start_date, self._tz)
        upper = as_upper_bound(filters.end_date, self._tz)

        by_game: dict[str, list[ResolvedPlayRecord]] = {}
        for descriptor, records in zip(selected, fetched):
            by_game[descriptor.game_type.value] = [
                record
                for record in records
                if (lower is None or record.timestamp >= lower)
                and (upper is None or record.timestamp <= upper)
            ]

        merged = [record for records in by_game.values() for record in records]
        merged.sort(key=lambda record: record.timestamp, reverse=True)

        stats = GlobalStats(
            total_play_count=len(merged),
            total_students=len({record.user_name for record in merged}),
            raw_data=merged[: self._raw_data_limit],
        )
        for descriptor in selected:
            records = by_game[descriptor.game_type.value]
            stats.game_type_stats.append(summarize_game(descriptor, records))
            stats.trends_by_game_type[descriptor.game_type.value] = build_trend(
                records, now, self._trend_days, self._tz
            )

        logger.info(
            "Aggregated global progress: games=%d, records=%d, students=%d",
            len(selected),
            stats.total_play_count,
            stats.total_students,
        )
        return stats
