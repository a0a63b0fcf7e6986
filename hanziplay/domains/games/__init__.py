# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Games domain: game registry and per-student stats reducers."""

from hanziplay.domains.games.reducers import (
    GameStats,
    HighScoreStats,
    LevelProgressStats,
    ProgressionStats,
    reduce_high_score,
    reduce_level_progress,
    reduce_progression,
    reduce_student_stats,
)
from hanziplay.domains.games.registry import (
    GameDescriptor,
    GameRegistry,
    GameType,
    InvalidGameTypeError,
    ScoreBucket,
    build_default_registry,
    get_game_registry,
)

__all__ = [
    # Registry
    "GameType",
    "GameDescriptor",
    "GameRegistry",
    "ScoreBucket",
    "InvalidGameTypeError",
    "build_default_registry",
    "get_game_registry",
    # Reducers
    "GameStats",
    "LevelProgressStats",
    "ProgressionStats",
    "HighScoreStats",
    "reduce_level_progress",
    "reduce_progression",
    "reduce_high_score",
    "reduce_student_stats",
]
