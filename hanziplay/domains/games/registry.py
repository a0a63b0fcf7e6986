# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Game registry: the per-game strategy table.

This module provides:
- GameType: identifiers of the built-in games
- GameDescriptor: display name, reducer and histogram buckets of a game
- GameRegistry: lookup of descriptors by game type
- get_game_registry: the default registry with the built-in games

Adding a game is a registry addition; report code never branches on a
specific game type.

Usage:
    from hanziplay.domains.games import get_game_registry

    registry = get_game_registry()
    descriptor = registry.get("Game1")
    stats = descriptor.reduce(records)
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from hanziplay.domains.games.reducers import (
    GameStats,
    reduce_high_score,
    reduce_level_progress,
    reduce_progression,
)
from hanziplay.models.records import PlayRecord

logger = logging.getLogger(__name__)


class GameType(str, Enum):
    """Built-in game types."""

    GAME1 = "Game1"
    GAME2 = "Game2"
    GAME3 = "Game3"


class InvalidGameTypeError(ValueError):
    """Raised when a game type is not registered.

    Attributes:
        game_type: The value that was looked up.
        available: Registered game type values.
    """

    def __init__(self, game_type: object, available: Sequence[str]) -> None:
        self.game_type = game_type
        self.available = list(available)
        available_str = ", ".join(self.available)
        super().__init__(
            f"Unknown game type '{game_type}'. Available: {available_str or 'none'}"
        )


@dataclass(frozen=True)
class ScoreBucket:
    """One histogram bucket: lower bound exclusive, upper bound inclusive."""

    label: str
    lower: int | None = None
    upper: int | None = None

    def contains(self, score: int) -> bool:
        if self.lower is not None and score <= self.lower:
            return False
        if self.upper is not None and score > self.upper:
            return False
        return True


@dataclass(frozen=True)
class GameDescriptor:
    """Everything report code needs to know about one game.

    Attributes:
        game_type: Game identifier.
        display_name: Name shown to teachers.
        reduce: Per-student stats reducer.
        score_buckets: Score histogram buckets; empty means no histogram.
        knowledge_point_kind: What error tallies use as knowledge point.
    """

    game_type: GameType
    display_name: str
    reduce: Callable[[Sequence[PlayRecord]], GameStats]
    score_buckets: tuple[ScoreBucket, ...] = ()
    knowledge_point_kind: str | None = None

    def score_distribution(self, scores: Sequence[int]) -> dict[str, int] | None:
        """Count scores per bucket, or None if the game has no histogram."""
        if not self.score_buckets:
            return None
        return {
            bucket.label: sum(1 for score in scores if bucket.contains(score))
            for bucket in self.score_buckets
        }


class GameRegistry:
    """Registry of game descriptors.

    Iteration follows registration order, which is also the order games
    appear in reports.

    Example:
        registry = GameRegistry()
        registry.register(GameDescriptor(GameType.GAME3, "量词贪吃蛇", reduce_high_score))
        registry.get("Game3").display_name
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._games: dict[GameType, GameDescriptor] = {}

    def register(self, descriptor: GameDescriptor) -> None:
        """Register a game.

        Raises:
            ValueError: If the game type is already registered.
        """
        if descriptor.game_type in self._games:
            raise ValueError(
                f"Game '{descriptor.game_type.value}' is already registered. "
                f"Use replace() to override."
            )

        self._games[descriptor.game_type] = descriptor
        logger.debug("Registered game: %s (%s)", descriptor.display_name, descriptor.game_type.value)

    def replace(self, descriptor: GameDescriptor) -> None:
        """Register or replace a game."""
        self._games[descriptor.game_type] = descriptor

    def resolve(self, game_type: "str | GameType") -> GameType:
        """Resolve a raw identifier to a registered GameType.

        Raises:
            InvalidGameTypeError: If the identifier is unknown or not registered.
        """
        try:
            resolved = GameType(game_type)
        except ValueError:
            raise InvalidGameTypeError(game_type, self.values()) from None

        if resolved not in self._games:
            raise InvalidGameTypeError(game_type, self.values())
        return resolved

    def get(self, game_type: "str | GameType") -> GameDescriptor:
        """Get a game's descriptor.

        Raises:
            InvalidGameTypeError: If the game is not registered.
        """
        return self._games[self.resolve(game_type)]

    def display_name(self, game_type: str) -> str:
        """Get a game's display name, falling back to the raw identifier."""
        try:
            return self.get(game_type).display_name
        except InvalidGameTypeError:
            return game_type

    def values(self) -> list[str]:
        """Registered game type values in registration order."""
        return [game_type.value for game_type in self._games]

    def __contains__(self, game_type: object) -> bool:
        try:
            self.resolve(game_type)  # type: ignore[arg-type]
        except InvalidGameTypeError:
            return False
        return True

    def __iter__(self) -> Iterator[GameDescriptor]:
        return iter(self._games.values())

    def __len__(self) -> int:
        return len(self._games)


def build_default_registry() -> GameRegistry:
    """Build a registry with the built-in games."""
    registry = GameRegistry()
    registry.register(
        GameDescriptor(
            game_type=GameType.GAME1,
            display_name="汉字图片连连看",
            reduce=reduce_level_progress,
            score_buckets=(
                ScoreBucket("0-30", upper=30),
                ScoreBucket("31-40", lower=30, upper=40),
                ScoreBucket("41-50", lower=40),
            ),
            knowledge_point_kind="unit",
        )
    )
    registry.register(
        GameDescriptor(
            game_type=GameType.GAME2,
            display_name="汉字偏旁消消乐",
            reduce=reduce_progression,
        )
    )
    registry.register(
        GameDescriptor(
            game_type=GameType.GAME3,
            display_name="量词贪吃蛇",
            reduce=reduce_high_score,
            score_buckets=(
                ScoreBucket("0-1000", upper=1000),
                ScoreBucket("1001-2000", lower=1000, upper=2000),
                ScoreBucket("2000+", lower=2000),
            ),
            knowledge_point_kind="classifier",
        )
    )
    return registry


@lru_cache(maxsize=1)
def get_game_registry() -> GameRegistry:
    """Get the default game registry."""
    return build_default_registry()
