# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-student game statistics reducers.

Each game scores progress differently, so each has its own reducer:
- Level-based (Game1): best score per level, summed into a total
- Progression-based (Game2): furthest level reached and its best score
- Score-only (Game3): highest score across all plays

Reducers are pure functions of their input records. The game registry
maps each game type to its reducer; reduce_student_stats dispatches
through it.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from hanziplay.models.records import PlayRecord

if TYPE_CHECKING:
    from hanziplay.domains.games.registry import GameRegistry, GameType


@dataclass
class LevelProgressStats:
    """Stats for level-based games.

    Attributes:
        total_play_count: Number of records.
        level_high_scores: Best score seen per level.
        total_score: Sum of the per-level best scores.
        completed_levels: Levels with at least one completed record.
    """

    total_play_count: int = 0
    level_high_scores: dict[int, int] = field(default_factory=dict)
    total_score: int = 0
    completed_levels: set[int] = field(default_factory=set)

    @property
    def play_count(self) -> int:
        return self.total_play_count

    @property
    def best_score(self) -> int:
        return self.total_score

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_play_count": self.total_play_count,
            "level_high_scores": {
                str(level): score for level, score in sorted(self.level_high_scores.items())
            },
            "total_score": self.total_score,
            "completed_levels": sorted(self.completed_levels),
        }


@dataclass
class ProgressionStats:
    """Stats for progression-based games.

    Attributes:
        play_count: Number of session starts (level 0 records).
        max_level: Furthest level reached.
        highest_score: Best score recorded at max_level.
    """

    play_count: int = 0
    max_level: int = 0
    highest_score: int = 0

    @property
    def best_score(self) -> int:
        return self.highest_score

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "play_count": self.play_count,
            "max_level": self.max_level,
            "highest_score": self.highest_score,
        }


@dataclass
class HighScoreStats:
    """Stats for score-only games."""

    play_count: int = 0
    highest_score: int = 0

    @property
    def best_score(self) -> int:
        return self.highest_score

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "play_count": self.play_count,
            "highest_score": self.highest_score,
        }


GameStats = Union[LevelProgressStats, ProgressionStats, HighScoreStats]


def reduce_level_progress(records: Iterable[PlayRecord]) -> LevelProgressStats:
    """Reduce records of a level-based game.

    Each level keeps only its best score; two plays of the same level
    scoring 30 and 45 contribute 45 to the total.
    """
    stats = LevelProgressStats()

    for record in records:
        stats.total_play_count += 1

        best = stats.level_high_scores.get(record.level)
        if best is None or record.score > best:
            stats.level_high_scores[record.level] = record.score

        if record.is_completed:
            stats.completed_levels.add(record.level)

    stats.total_score = sum(stats.level_high_scores.values())
    return stats


def reduce_progression(records: Iterable[PlayRecord]) -> ProgressionStats:
    """Reduce records of a progression-based game.

    Level 0 records mark session starts and are counted as plays. The
    tracked best is compared on (level, score): a higher level always
    wins, and the same level wins only with a strictly higher score.
    """
    stats = ProgressionStats()

    for record in records:
        if record.level == 0:
            stats.play_count += 1

        if record.level > stats.max_level or (
            record.level == stats.max_level and record.score > stats.highest_score
        ):
            stats.max_level = record.level
            stats.highest_score = record.score

    return stats


def reduce_high_score(records: Iterable[PlayRecord]) -> HighScoreStats:
    """Reduce records of a score-only game."""
    stats = HighScoreStats()

    for record in records:
        stats.play_count += 1
        if record.score > stats.highest_score:
            stats.highest_score = record.score

    return stats


def reduce_student_stats(
    student_id: str,
    game_type: "str | GameType",
    records: Iterable[PlayRecord],
    registry: "GameRegistry | None" = None,
) -> GameStats:
    """Reduce one student's records for one game into summary stats.

    Records belonging to other students or other games are ignored.

    Args:
        student_id: Student whose records are reduced.
        game_type: Game identifier.
        records: Candidate play records.
        registry: Game registry (defaults to the built-in games).

    Returns:
        The game's stats variant.

    Raises:
        InvalidGameTypeError: If the game type is not registered.
    """
    from hanziplay.domains.games.registry import get_game_registry

    if registry is None:
        registry = get_game_registry()
    descriptor = registry.get(game_type)

    own_records = [
        record
        for record in records
        if record.user_id == student_id and record.game_id == descriptor.game_type.value
    ]
    return descriptor.reduce(own_records)
