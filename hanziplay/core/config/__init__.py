# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the HanziPlay dashboard backend.

Example:
    >>> from hanziplay.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from hanziplay.core.config.settings import (
    APISettings,
    ReportSettings,
    Settings,
    StoreSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "StoreSettings",
    "ReportSettings",
    "APISettings",
]
