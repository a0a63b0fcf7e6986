# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the game registry."""

import pytest

from hanziplay.domains.games import (
    GameDescriptor,
    GameRegistry,
    GameType,
    InvalidGameTypeError,
    ScoreBucket,
    get_game_registry,
    reduce_high_score,
    reduce_level_progress,
)


class TestDefaultRegistry:
    """Tests for the built-in games."""

    def test_games_in_order(self, registry: GameRegistry) -> None:
        assert registry.values() == ["Game1", "Game2", "Game3"]
        assert len(registry) == 3

    def test_display_names(self, registry: GameRegistry) -> None:
        assert registry.get("Game1").display_name == "汉字图片连连看"
        assert registry.get(GameType.GAME2).display_name == "汉字偏旁消消乐"
        assert registry.get("Game3").display_name == "量词贪吃蛇"

    def test_unknown_display_name_falls_back(self, registry: GameRegistry) -> None:
        assert registry.display_name("Game9") == "Game9"

    def test_contains(self, registry: GameRegistry) -> None:
        assert "Game1" in registry
        assert "Game9" not in registry

    def test_get_unknown_lists_available(self, registry: GameRegistry) -> None:
        with pytest.raises(InvalidGameTypeError) as exc_info:
            registry.get("Game9")

        assert exc_info.value.available == ["Game1", "Game2", "Game3"]
        assert "Game9" in str(exc_info.value)

    def test_default_registry_cached(self) -> None:
        assert get_game_registry() is get_game_registry()


class TestScoreDistribution:
    """Tests for score histograms."""

    def test_game1_buckets(self, registry: GameRegistry) -> None:
        distribution = registry.get("Game1").score_distribution([0, 30, 31, 40, 41, 50])

        assert distribution == {"0-30": 2, "31-40": 2, "41-50": 2}

    def test_game3_buckets(self, registry: GameRegistry) -> None:
        distribution = registry.get("Game3").score_distribution([900, 1000, 1500, 2000, 2500])

        assert distribution == {"0-1000": 2, "1001-2000": 2, "2000+": 1}

    def test_game_without_buckets(self, registry: GameRegistry) -> None:
        assert registry.get("Game2").score_distribution([10, 20]) is None

    def test_bucket_bounds(self) -> None:
        bucket = ScoreBucket("31-40", lower=30, upper=40)

        assert bucket.contains(30) is False
        assert bucket.contains(31) is True
        assert bucket.contains(40) is True
        assert bucket.contains(41) is False


class TestRegistration:
    """Tests for registering games."""

    def test_register_duplicate_rejected(self) -> None:
        registry = GameRegistry()
        registry.register(GameDescriptor(GameType.GAME3, "Snake", reduce_high_score))

        with pytest.raises(ValueError):
            registry.register(GameDescriptor(GameType.GAME3, "Snake 2", reduce_high_score))

    def test_replace(self) -> None:
        registry = GameRegistry()
        registry.register(GameDescriptor(GameType.GAME3, "Snake", reduce_high_score))

        registry.replace(GameDescriptor(GameType.GAME3, "Snake 2", reduce_high_score))

        assert registry.get("Game3").display_name == "Snake 2"

    def test_known_type_not_registered(self) -> None:
        registry = GameRegistry()
        registry.register(GameDescriptor(GameType.GAME1, "Match", reduce_level_progress))

        with pytest.raises(InvalidGameTypeError):
            registry.get("Game3")

    def test_empty_registry(self) -> None:
        registry = GameRegistry()

        assert len(registry) == 0
        assert list(registry) == []
