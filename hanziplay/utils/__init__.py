# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the HanziPlay dashboard backend.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations and day bucketing
- references: Document reference normalization
"""

from hanziplay.utils.datetime import (
    as_lower_bound,
    as_upper_bound,
    day_key,
    end_of_day,
    ensure_utc,
    format_iso,
    local_date,
    parse_iso,
    start_of_day,
    trailing_days,
    utc_now,
)
from hanziplay.utils.logging import bind_context, clear_context, get_logger, setup_logging
from hanziplay.utils.references import parse_reference

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "format_iso",
    "parse_iso",
    "local_date",
    "day_key",
    "trailing_days",
    "start_of_day",
    "end_of_day",
    "as_lower_bound",
    "as_upper_bound",
    # References
    "parse_reference",
]
