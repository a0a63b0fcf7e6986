# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Wrong-answer pattern analysis.

This module provides the ErrorPatternAnalyzer, which turns the
per-student wrong-answer tallies of the ``errorPatterns`` collection
into:
- Error type distribution: wrong answers ranked per game with shares
- Error frequency trend: daily error counts per game over trailing days
- Error concentration: knowledge points ranked by errors and difficulty
- Student view: flat entries and a per-knowledge-point summary

Tallies and their embedded counters go through a best-effort fold, so a
malformed row or counter is skipped with a warning and counted instead
of failing the analysis.

Usage:
    analyzer = ErrorPatternAnalyzer(store)
    analysis = await analyzer.analyze_errors(ErrorFilters(game_type="Game3"))
    payload = analysis.to_dict(top_n=10)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from pydantic import ValidationError

from hanziplay.domains.games.registry import GameRegistry, get_game_registry
from hanziplay.domains.records.fetcher import game_reference_predicate
from hanziplay.domains.records.service import user_reference_predicate
from hanziplay.infrastructure.store.base import (
    ERROR_TALLIES,
    Document,
    OrderBy,
    Predicate,
    RecordStore,
)
from hanziplay.models.tallies import ErrorAnswer, ErrorTally
from hanziplay.utils.datetime import (
    as_lower_bound,
    as_upper_bound,
    day_key,
    format_iso,
    trailing_days,
    utc_now,
)
from hanziplay.utils.folding import Outcome, Skip, best_effort

logger = logging.getLogger(__name__)

# Difficulty tiers, as a share of the most frequent knowledge point's errors
HIGH_DIFFICULTY_RATIO = 0.7
MEDIUM_DIFFICULTY_RATIO = 0.3

TOP_WRONG_ANSWERS = 3


def percentage(part: int, total: int) -> int:
    """Integer percentage of ``part`` in ``total``, rounding halves up.

    Example:
        >>> percentage(1, 8)
        13
    """
    if total <= 0:
        return 0
    share = Decimal(part * 100) / Decimal(total)
    return int(share.quantize(Decimal(1), rounding=ROUND_HALF_UP))


# =============================================================================
# Normalized data
# =============================================================================


@dataclass
class ErrorFilters:
    """Filters for an error analysis.

    Attributes:
        game_type: Restrict to one game.
        student_id: Restrict to one student; selects the student view.
        start_date: Earliest tally update, inclusive.
        end_date: Latest tally update, inclusive.
        order_by: Tally field to order by (e.g. ``LastUpdated``).
        descending: Order direction.
        limit: Maximum number of tallies read.
    """

    game_type: str | None = None
    student_id: str | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""

        def bound(value: date | datetime | None) -> str | None:
            if isinstance(value, datetime):
                return format_iso(value)
            return value.isoformat() if value else None

        return {
            "game_type": self.game_type,
            "student_id": self.student_id,
            "start_date": bound(self.start_date),
            "end_date": bound(self.end_date),
            "limit": self.limit,
        }


@dataclass
class ErrorEntry:
    """One wrong-answer counter flattened out of its tally.

    Attributes:
        tally_id: ID of the tally document.
        user_id: Student ID.
        game_id: Game identifier.
        knowledge_point: Knowledge point the error belongs to.
        wrong_answer: The wrong answer given.
        error_count: Accumulated count.
        last_attempt_time: Time of the latest wrong attempt, if recorded.
        last_updated: When the tally was last written, if recorded.
    """

    tally_id: str
    user_id: str
    game_id: str
    knowledge_point: str
    wrong_answer: str
    error_count: int
    last_attempt_time: datetime | None = None
    last_updated: datetime | None = None

    @property
    def occurred_at(self) -> datetime | None:
        """Best known time of the error."""
        return self.last_attempt_time or self.last_updated

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "tally_id": self.tally_id,
            "user_id": self.user_id,
            "game_id": self.game_id,
            "knowledge_point": self.knowledge_point,
            "wrong_answer": self.wrong_answer,
            "error_count": self.error_count,
            "last_attempt_time": format_iso(self.last_attempt_time),
            "last_updated": format_iso(self.last_updated),
        }


def _invalid_fields(error: ValidationError) -> str:
    fields = [".".join(str(part) for part in item["loc"]) for item in error.errors() if item["loc"]]
    return ", ".join(fields) or "unknown"


def parse_tally(document: Document) -> Outcome[ErrorTally]:
    """Validate a tally document, or describe why it is unusable."""
    try:
        return ErrorTally.from_document(document)
    except ValidationError as e:
        return Skip(reason=f"invalid fields: {_invalid_fields(e)}", source=document.id)


def flatten_tally(tally: ErrorTally) -> list[Outcome[ErrorEntry]]:
    """Flatten a tally's embedded counters into entries.

    Each counter is validated on its own; a malformed counter becomes a
    Skip without affecting its siblings.
    """
    outcomes: list[Outcome[ErrorEntry]] = []

    for key, raw in tally.error_answers.items():
        source = f"{tally.id}/{key}"
        try:
            answer = ErrorAnswer.model_validate(raw)
        except ValidationError as e:
            outcomes.append(Skip(reason=f"invalid fields: {_invalid_fields(e)}", source=source))
            continue

        outcomes.append(
            ErrorEntry(
                tally_id=tally.id,
                user_id=tally.user_id,
                game_id=tally.game_id,
                knowledge_point=answer.knowledge_point,
                wrong_answer=answer.wrong_answer,
                error_count=answer.error_count,
                last_attempt_time=answer.last_attempt_time,
                last_updated=tally.last_updated,
            )
        )

    return outcomes


# =============================================================================
# Result shapes
# =============================================================================


@dataclass
class AnswerCount:
    """A wrong answer with its count and share."""

    answer: str
    count: int
    percentage: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"answer": self.answer, "count": self.count, "percentage": self.percentage}


@dataclass
class WrongAnswerShare:
    """A wrong answer's share of one game's errors."""

    wrong_answer: str
    count: int
    percentage: int
    knowledge_points: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "wrong_answer": self.wrong_answer,
            "count": self.count,
            "percentage": self.percentage,
            "knowledge_points": self.knowledge_points,
        }


@dataclass
class ErrorTypeDistribution:
    """Ranked wrong answers of one game.

    Attributes:
        game_type: Game identifier.
        game_name: Display name.
        total_errors: Sum of all counts.
        sample_count: Tallies of this game in the analysis.
        error_patterns: Every wrong answer, most frequent first.
    """

    game_type: str
    game_name: str
    total_errors: int
    sample_count: int
    error_patterns: list[WrongAnswerShare] = field(default_factory=list)

    def top(self, n: int) -> "ErrorTypeDistribution":
        """Copy keeping only the ``n`` most frequent wrong answers."""
        return replace(self, error_patterns=self.error_patterns[:n])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "game_type": self.game_type,
            "game_name": self.game_name,
            "total_errors": self.total_errors,
            "sample_count": self.sample_count,
            "error_patterns": [share.to_dict() for share in self.error_patterns],
        }


@dataclass
class GameDayErrors:
    """One game's errors on one day."""

    game_type: str
    game_name: str
    error_count: int
    top_wrong_answers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "game_type": self.game_type,
            "game_name": self.game_name,
            "error_count": self.error_count,
            "top_wrong_answers": self.top_wrong_answers,
        }


@dataclass
class DailyErrorFrequency:
    """All games' errors on one day."""

    date: str
    games: list[GameDayErrors] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return sum(game.error_count for game in self.games)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "date": self.date,
            "total_errors": self.total_errors,
            "games": [game.to_dict() for game in self.games],
        }


@dataclass
class KnowledgePointConcentration:
    """Error concentration on one knowledge point.

    Attributes:
        knowledge_point: Knowledge point label.
        error_count: Errors across all games and students.
        student_count: Distinct students with errors here.
        game_count: Distinct games with errors here.
        difficulty_score: Average errors per affected student.
        top_wrong_answers: Most frequent wrong answers.
        difficulty_level: ``high``, ``medium`` or ``low``.
    """

    knowledge_point: str
    error_count: int
    student_count: int
    game_count: int
    difficulty_score: float
    top_wrong_answers: list[AnswerCount] = field(default_factory=list)
    difficulty_level: str = "low"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "knowledge_point": self.knowledge_point,
            "error_count": self.error_count,
            "student_count": self.student_count,
            "game_count": self.game_count,
            "difficulty_score": self.difficulty_score,
            "top_wrong_answers": [answer.to_dict() for answer in self.top_wrong_answers],
            "difficulty_level": self.difficulty_level,
        }


@dataclass
class ErrorConcentration:
    """Knowledge points ranked by error volume."""

    knowledge_points: list[KnowledgePointConcentration] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return sum(point.error_count for point in self.knowledge_points)

    @property
    def difficulty_groups(self) -> dict[str, int]:
        groups = {"high": 0, "medium": 0, "low": 0}
        for point in self.knowledge_points:
            groups[point.difficulty_level] += 1
        return groups

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "knowledge_points": [point.to_dict() for point in self.knowledge_points],
            "total_errors": self.total_errors,
            "total_knowledge_points": len(self.knowledge_points),
            "difficulty_groups": self.difficulty_groups,
        }


@dataclass
class KnowledgePointSummary:
    """One student's errors on one knowledge point."""

    knowledge_point: str
    total_errors: int
    last_attempt_time: datetime | None
    wrong_answers: list[AnswerCount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "knowledge_point": self.knowledge_point,
            "total_errors": self.total_errors,
            "last_attempt_time": format_iso(self.last_attempt_time),
            "wrong_answers": [answer.to_dict() for answer in self.wrong_answers],
        }


def _distributions_dict(
    distributions: list[ErrorTypeDistribution],
    top_n: int | None,
) -> list[dict[str, Any]]:
    if top_n is not None:
        distributions = [distribution.top(top_n) for distribution in distributions]
    return [distribution.to_dict() for distribution in distributions]


@dataclass
class GlobalErrorAnalysis:
    """Error analysis across students.

    Attributes:
        filters: Filters the analysis ran with.
        total_records: Tallies read.
        skipped: Malformed tallies and counters left out.
        error_type_distribution: Per-game ranked wrong answers.
        error_frequency_trend: Daily errors, oldest day first.
        error_concentration: Knowledge points ranked by errors.
    """

    filters: ErrorFilters
    total_records: int = 0
    skipped: int = 0
    error_type_distribution: list[ErrorTypeDistribution] = field(default_factory=list)
    error_frequency_trend: list[DailyErrorFrequency] = field(default_factory=list)
    error_concentration: ErrorConcentration = field(default_factory=ErrorConcentration)

    def to_dict(self, top_n: int | None = None) -> dict[str, Any]:
        """Convert to dictionary.

        Args:
            top_n: Wrong answers kept per game; None keeps all.
        """
        return {
            "view": "global",
            "filters": self.filters.to_dict(),
            "total_records": self.total_records,
            "skipped": self.skipped,
            "error_type_distribution": _distributions_dict(self.error_type_distribution, top_n),
            "error_frequency_trend": [day.to_dict() for day in self.error_frequency_trend],
            "error_concentration": self.error_concentration.to_dict(),
        }


@dataclass
class StudentErrorAnalysis:
    """Error analysis of a single student.

    Attributes:
        student_id: Student ID.
        filters: Filters the analysis ran with.
        total_records: Tallies read.
        skipped: Malformed tallies and counters left out.
        error_type_distribution: Per-game ranked wrong answers.
        error_frequency_trend: Daily errors, oldest day first.
        raw_data: Flattened counters.
        knowledge_point_analysis: Per-knowledge-point summary.
    """

    student_id: str
    filters: ErrorFilters
    total_records: int = 0
    skipped: int = 0
    error_type_distribution: list[ErrorTypeDistribution] = field(default_factory=list)
    error_frequency_trend: list[DailyErrorFrequency] = field(default_factory=list)
    raw_data: list[ErrorEntry] = field(default_factory=list)
    knowledge_point_analysis: list[KnowledgePointSummary] = field(default_factory=list)

    @property
    def total_error_count(self) -> int:
        return sum(point.total_errors for point in self.knowledge_point_analysis)

    def to_dict(self, top_n: int | None = None) -> dict[str, Any]:
        """Convert to dictionary.

        Args:
            top_n: Wrong answers kept per game; None keeps all.
        """
        return {
            "view": "student",
            "student_id": self.student_id,
            "filters": self.filters.to_dict(),
            "total_records": self.total_records,
            "skipped": self.skipped,
            "error_type_distribution": _distributions_dict(self.error_type_distribution, top_n),
            "error_frequency_trend": [day.to_dict() for day in self.error_frequency_trend],
            "raw_data": [entry.to_dict() for entry in self.raw_data],
            "knowledge_point_analysis": [
                point.to_dict() for point in self.knowledge_point_analysis
            ],
            "total_error_count": self.total_error_count,
        }


ErrorAnalysis = Union[GlobalErrorAnalysis, StudentErrorAnalysis]


# =============================================================================
# Analyzer
# =============================================================================


def _ranked_answers(entries: list[ErrorEntry], total: int) -> list[AnswerCount]:
    counts: dict[str, int] = defaultdict(int)
    for entry in entries:
        counts[entry.wrong_answer] += entry.error_count
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        AnswerCount(answer=answer, count=count, percentage=percentage(count, total))
        for answer, count in ranked
    ]


def difficulty_level(error_count: int, max_error_count: int) -> str:
    """Classify a knowledge point against the most error-prone one."""
    if max_error_count <= 0:
        return "low"
    ratio = error_count / max_error_count
    if ratio >= HIGH_DIFFICULTY_RATIO:
        return "high"
    if ratio >= MEDIUM_DIFFICULTY_RATIO:
        return "medium"
    return "low"


class ErrorPatternAnalyzer:
    """Analyzes wrong-answer tallies.

    Attributes:
        _store: Document store.
        _registry: Game registry; defines game order and names.
        _tz: Timezone for day bucketing.
        _trend_days: Number of trailing days in the frequency trend.
        _default_limit: Row cap for queries without a student or game filter.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: GameRegistry | None = None,
        tz: tzinfo = timezone.utc,
        trend_days: int = 7,
        default_limit: int = 100,
    ) -> None:
        """Initialize the analyzer.

        Args:
            store: Document store.
            registry: Game registry (defaults to the built-in games).
            tz: Timezone for day bucketing and bare-date bounds.
            trend_days: Number of trailing days in the frequency trend.
            default_limit: Row cap applied when no filter narrows the query.
        """
        self._store = store
        self._registry = registry if registry is not None else get_game_registry()
        self._tz = tz
        self._trend_days = trend_days
        self._default_limit = default_limit

    async def analyze_errors(
        self,
        filters: ErrorFilters | None = None,
        now: datetime | None = None,
    ) -> ErrorAnalysis:
        """Analyze tallies matching the filters.

        Args:
            filters: Optional game, student, date, ordering and limit filters.
            now: Reference instant for the trend (defaults to the current time).

        Returns:
            StudentErrorAnalysis when a student filter is set, otherwise
            GlobalErrorAnalysis.

        Raises:
            InvalidGameTypeError: If the game filter names an unknown game.
            StoreUnavailableError: If the tally query fails.
        """
        filters = filters or ErrorFilters()
        now = now or utc_now()

        documents = await self._query(filters)

        tallies = best_effort((parse_tally(document) for document in documents), context="error tally")
        entries = best_effort(
            (outcome for tally in tallies.items for outcome in flatten_tally(tally)),
            context="error entry",
        )
        skipped = tallies.skipped_count + entries.skipped_count

        distribution = self.error_type_distribution(tallies.items, entries.items)
        trend = self.error_frequency_trend(entries.items, now)

        logger.info(
            "Analyzed error patterns: tallies=%d, entries=%d, skipped=%d, student=%s",
            len(tallies.items),
            len(entries.items),
            skipped,
            filters.student_id,
        )

        if filters.student_id:
            return StudentErrorAnalysis(
                student_id=filters.student_id,
                filters=filters,
                total_records=len(tallies.items),
                skipped=skipped,
                error_type_distribution=distribution,
                error_frequency_trend=trend,
                raw_data=entries.items,
                knowledge_point_analysis=self.knowledge_point_analysis(entries.items),
            )

        return GlobalErrorAnalysis(
            filters=filters,
            total_records=len(tallies.items),
            skipped=skipped,
            error_type_distribution=distribution,
            error_frequency_trend=trend,
            error_concentration=self.error_concentration(entries.items),
        )

    async def _query(self, filters: ErrorFilters) -> list[Document]:
        predicates: list[Predicate] = []
        if filters.student_id:
            predicates.append(user_reference_predicate(filters.student_id))
        if filters.game_type:
            game_type = self._registry.resolve(filters.game_type)
            predicates.append(game_reference_predicate(game_type))

        lower = as_lower_bound(filters.start_date, self._tz)
        upper = as_upper_bound(filters.end_date, self._tz)
        if lower is not None:
            predicates.append(Predicate("LastUpdated", ">=", lower))
        if upper is not None:
            predicates.append(Predicate("LastUpdated", "<=", upper))

        order_by = OrderBy(filters.order_by, filters.descending) if filters.order_by else None
        limit = filters.limit

        unfiltered = not (
            filters.student_id or filters.game_type or filters.start_date or filters.end_date
        )
        if limit is None and unfiltered:
            limit = self._default_limit
            if order_by is None:
                order_by = OrderBy("LastUpdated", descending=True)

        return await self._store.query(ERROR_TALLIES, predicates, order_by=order_by, limit=limit)

    def _ordered_games(self, game_ids: list[str]) -> list[str]:
        known = [value for value in self._registry.values() if value in game_ids]
        unknown = [game_id for game_id in dict.fromkeys(game_ids) if game_id not in known]
        return known + unknown

    def error_type_distribution(
        self,
        tallies: list[ErrorTally],
        entries: list[ErrorEntry],
    ) -> list[ErrorTypeDistribution]:
        """Rank wrong answers per game.

        Games whose counters sum to zero are left out.
        """
        entries_by_game: dict[str, list[ErrorEntry]] = defaultdict(list)
        for entry in entries:
            entries_by_game[entry.game_id].append(entry)

        samples_by_game: dict[str, int] = defaultdict(int)
        for tally in tallies:
            samples_by_game[tally.game_id] += 1

        distributions = []
        for game_id in self._ordered_games([tally.game_id for tally in tallies]):
            game_entries = entries_by_game.get(game_id, [])
            total = sum(entry.error_count for entry in game_entries)
            if total == 0:
                continue

            counts: dict[str, int] = defaultdict(int)
            points: dict[str, list[str]] = defaultdict(list)
            for entry in game_entries:
                counts[entry.wrong_answer] += entry.error_count
                if entry.knowledge_point not in points[entry.wrong_answer]:
                    points[entry.wrong_answer].append(entry.knowledge_point)

            shares = [
                WrongAnswerShare(
                    wrong_answer=answer,
                    count=count,
                    percentage=percentage(count, total),
                    knowledge_points=points[answer],
                )
                for answer, count in counts.items()
            ]
            shares.sort(key=lambda share: share.count, reverse=True)

            distributions.append(
                ErrorTypeDistribution(
                    game_type=game_id,
                    game_name=self._registry.display_name(game_id),
                    total_errors=total,
                    sample_count=samples_by_game[game_id],
                    error_patterns=shares,
                )
            )

        return distributions

    def error_frequency_trend(
        self,
        entries: list[ErrorEntry],
        now: datetime,
    ) -> list[DailyErrorFrequency]:
        """Count errors per game for each trailing day.

        Every day of the window gets an entry, oldest first. Games without
        errors on a day are left out of that day. With no entries at all
        the trend is empty.
        """
        if not entries:
            return []

        days = [day.isoformat() for day in trailing_days(now, self._trend_days, self._tz)]
        window = set(days)

        # day -> game -> wrong answer -> count
        buckets: dict[str, dict[str, dict[str, int]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(int))
        )
        for entry in entries:
            occurred_at = entry.occurred_at
            if occurred_at is None:
                continue
            key = day_key(occurred_at, self._tz)
            if key in window:
                buckets[key][entry.game_id][entry.wrong_answer] += entry.error_count

        trend = []
        for day in days:
            games = []
            day_buckets = buckets.get(day, {})
            for game_id in self._ordered_games(list(day_buckets)):
                answers = day_buckets[game_id]
                error_count = sum(answers.values())
                if error_count == 0:
                    continue
                ranked = sorted(answers.items(), key=lambda item: item[1], reverse=True)
                games.append(
                    GameDayErrors(
                        game_type=game_id,
                        game_name=self._registry.display_name(game_id),
                        error_count=error_count,
                        top_wrong_answers=[
                            answer for answer, count in ranked[:TOP_WRONG_ANSWERS] if count > 0
                        ],
                    )
                )
            trend.append(DailyErrorFrequency(date=day, games=games))

        return trend

    def error_concentration(self, entries: list[ErrorEntry]) -> ErrorConcentration:
        """Rank knowledge points by error volume across games and students."""
        entries_by_point: dict[str, list[ErrorEntry]] = defaultdict(list)
        for entry in entries:
            entries_by_point[entry.knowledge_point].append(entry)

        totals = {
            point: sum(entry.error_count for entry in point_entries)
            for point, point_entries in entries_by_point.items()
        }
        max_count = max(totals.values(), default=0)

        points = []
        for point, point_entries in entries_by_point.items():
            error_count = totals[point]
            student_count = len({entry.user_id for entry in point_entries})
            points.append(
                KnowledgePointConcentration(
                    knowledge_point=point,
                    error_count=error_count,
                    student_count=student_count,
                    game_count=len({entry.game_id for entry in point_entries}),
                    difficulty_score=error_count / student_count if student_count else 0.0,
                    top_wrong_answers=_ranked_answers(point_entries, error_count)[:TOP_WRONG_ANSWERS],
                    difficulty_level=difficulty_level(error_count, max_count),
                )
            )

        points.sort(key=lambda point: point.error_count, reverse=True)
        return ErrorConcentration(knowledge_points=points)

    def knowledge_point_analysis(self, entries: list[ErrorEntry]) -> list[KnowledgePointSummary]:
        """Summarize a single student's errors per knowledge point."""
        entries_by_point: dict[str, list[ErrorEntry]] = defaultdict(list)
        for entry in entries:
            entries_by_point[entry.knowledge_point].append(entry)

        summaries = []
        for point, point_entries in entries_by_point.items():
            total = sum(entry.error_count for entry in point_entries)
            attempt_times = [
                entry.last_attempt_time for entry in point_entries if entry.last_attempt_time
            ]
            summaries.append(
                KnowledgePointSummary(
                    knowledge_point=point,
                    total_errors=total,
                    last_attempt_time=max(attempt_times, default=None),
                    wrong_answers=_ranked_answers(point_entries, total),
                )
            )

        summaries.sort(key=lambda summary: summary.total_errors, reverse=True)
        return summaries
