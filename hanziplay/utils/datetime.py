# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the HanziPlay dashboard backend.

This module provides standardized datetime operations to ensure consistency
across the reports. All datetime operations should use these utilities.

Design Decisions:
-----------------
1. All timestamps are handled as timezone-aware datetimes
2. Naive datetimes coming from the store are assumed to be UTC
3. Calendar-day bucketing happens in the configured report timezone,
   and day keys are ``YYYY-MM-DD`` strings

Usage:
------
    from hanziplay.utils.datetime import utc_now, day_key, trailing_days

    now = utc_now()
    key = day_key(record.timestamp, tz)
    window = trailing_days(now, 7, tz)
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat()


def parse_iso(iso_string: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string.

    Args:
        iso_string: ISO 8601 formatted string.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return ensure_utc(dt)


def local_date(dt: datetime, tz: tzinfo = timezone.utc) -> date:
    """Get the calendar date of an instant in the given timezone."""
    return ensure_utc(dt).astimezone(tz).date()


def day_key(dt: datetime, tz: tzinfo = timezone.utc) -> str:
    """Get the ``YYYY-MM-DD`` bucket key of an instant.

    Args:
        dt: Instant to bucket.
        tz: Timezone whose calendar defines the day.

    Returns:
        Day key string.
    """
    return local_date(dt, tz).isoformat()


def trailing_days(now: datetime, days: int, tz: tzinfo = timezone.utc) -> list[date]:
    """Get the calendar days of a trailing window ending today.

    Args:
        now: Reference instant; its calendar day is the last in the window.
        days: Window length.
        tz: Timezone whose calendar defines the days.

    Returns:
        ``days`` consecutive dates, oldest first.

    Example:
        >>> trailing_days(datetime(2025, 3, 10, 9, tzinfo=timezone.utc), 3)
        [datetime.date(2025, 3, 8), datetime.date(2025, 3, 9), datetime.date(2025, 3, 10)]
    """
    today = local_date(now, tz)
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def start_of_day(day: date, tz: tzinfo = timezone.utc) -> datetime:
    """Get the first instant of a calendar day, as UTC."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def end_of_day(day: date, tz: tzinfo = timezone.utc) -> datetime:
    """Get the last instant of a calendar day, as UTC."""
    return datetime.combine(day, time.max, tzinfo=tz).astimezone(timezone.utc)


def as_lower_bound(value: date | datetime | None, tz: tzinfo = timezone.utc) -> datetime | None:
    """Normalize a filter start bound.

    A bare date covers its whole calendar day, so it maps to the day's
    first instant.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return start_of_day(value, tz)


def as_upper_bound(value: date | datetime | None, tz: tzinfo = timezone.utc) -> datetime | None:
    """Normalize a filter end bound.

    A bare date covers its whole calendar day, so it maps to the day's
    last instant.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return end_of_day(value, tz)

