# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
HanziPlay dashboard backend. Settings are loaded from environment
variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from hanziplay.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.reports.trend_days)
    7
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Document store configuration.

    The dashboard reads game records, users and error tallies from a
    document store. Two backends are available:
    - memory: process-local store, used for development and tests
    - sql: documents kept as JSON rows in a relational database

    Attributes:
        backend: Which store backend to build at startup.
        url: SQLAlchemy async URL for the sql backend.
        echo: Log emitted SQL statements.
        pool_pre_ping: Test pooled connections before use.
    """

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        extra="ignore",
    )

    backend: Literal["memory", "sql"] = "sql"
    url: str = "sqlite+aiosqlite:///./hanziplay.db"
    echo: bool = False
    pool_pre_ping: bool = True


class ReportSettings(BaseSettings):
    """Report aggregation configuration.

    Attributes:
        timezone: IANA timezone used to bucket records into calendar days.
        trend_days: Number of trailing days in trend series.
        raw_data_limit: Maximum raw records returned with global stats.
        error_query_limit: Default row cap for unfiltered error queries.
        top_error_patterns: Wrong answers kept per game for presentation.
        recent_games_limit: Recent plays listed in a student report.
        unknown_user_label: Name substituted for users that cannot be found.
    """

    model_config = SettingsConfigDict(
        env_prefix="REPORTS_",
        extra="ignore",
    )

    timezone: str = "UTC"
    trend_days: int = Field(default=7, ge=1)
    raw_data_limit: int = Field(default=100, ge=0)
    error_query_limit: int = Field(default=100, ge=1)
    top_error_patterns: int = Field(default=10, ge=1)
    recent_games_limit: int = Field(default=10, ge=0)
    unknown_user_label: str = "Unknown User"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject timezone names the tz database does not know."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone object for day bucketing."""
        return ZoneInfo(self.timezone)


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        title: OpenAPI title.
        prefix: Prefix for versioned routes.
        cors_origins: Comma-separated list of allowed origins.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    title: str = "HanziPlay Dashboard API"
    prefix: str = "/api/v1"
    cors_origins: str = "http://localhost:3000"

    @property
    def origins_list(self) -> list[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        store: Document store settings.
        reports: Report aggregation settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    store: StoreSettings = Field(default_factory=StoreSettings)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    api: APISettings = Field(default_factory=APISettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
