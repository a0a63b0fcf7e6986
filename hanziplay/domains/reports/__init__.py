# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reports domain: progress aggregation and error pattern analysis."""

from hanziplay.domains.reports.aggregator import (
    GameTypeStats,
    GlobalAggregator,
    GlobalStats,
    ProgressFilters,
    TrendPoint,
    build_trend,
    summarize_game,
)
from hanziplay.domains.reports.error_patterns import (
    AnswerCount,
    DailyErrorFrequency,
    ErrorAnalysis,
    ErrorConcentration,
    ErrorEntry,
    ErrorFilters,
    ErrorPatternAnalyzer,
    ErrorTypeDistribution,
    GameDayErrors,
    GlobalErrorAnalysis,
    KnowledgePointConcentration,
    KnowledgePointSummary,
    StudentErrorAnalysis,
    WrongAnswerShare,
    difficulty_level,
    percentage,
)
from hanziplay.domains.reports.service import (
    BestGame,
    DailyErrorTotals,
    RecentGame,
    ReportService,
    StudentErrorTrends,
    StudentGameProgress,
    StudentProgressReport,
)

__all__ = [
    # Global progress
    "GlobalAggregator",
    "ProgressFilters",
    "GlobalStats",
    "GameTypeStats",
    "TrendPoint",
    "build_trend",
    "summarize_game",
    # Error patterns
    "ErrorPatternAnalyzer",
    "ErrorFilters",
    "ErrorEntry",
    "ErrorAnalysis",
    "GlobalErrorAnalysis",
    "StudentErrorAnalysis",
    "ErrorTypeDistribution",
    "WrongAnswerShare",
    "DailyErrorFrequency",
    "GameDayErrors",
    "ErrorConcentration",
    "KnowledgePointConcentration",
    "KnowledgePointSummary",
    "AnswerCount",
    "difficulty_level",
    "percentage",
    # Service
    "ReportService",
    "StudentProgressReport",
    "StudentGameProgress",
    "RecentGame",
    "BestGame",
    "StudentErrorTrends",
    "DailyErrorTotals",
]
