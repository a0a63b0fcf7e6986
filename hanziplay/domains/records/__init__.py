# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Play record domain: raw record retrieval and admin record management."""

from hanziplay.domains.records.fetcher import (
    UNKNOWN_USER,
    RawRecordFetcher,
    game_reference_predicate,
    parse_play_record,
)
from hanziplay.domains.records.service import (
    GameRecordService,
    StudentGameSummary,
    user_reference_predicate,
)

__all__ = [
    "UNKNOWN_USER",
    "RawRecordFetcher",
    "GameRecordService",
    "StudentGameSummary",
    "game_reference_predicate",
    "user_reference_predicate",
    "parse_play_record",
]
