"""
Datetime utility functions.
Provides timezone-aware helpers used across services.
"""

from datetime import datetime, timedelta
from typing import Optional
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to an aware UTC datetime.

    SQLite hands back naive datetimes for DateTime(timezone=True) columns;
    those are treated as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def start_of_utc_day(value: Optional[datetime] = None) -> datetime:
    """Midnight (UTC) of the day containing value (default: now)."""
    value = ensure_utc(value) if value is not None else utcnow()
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_utc_day(value: Optional[datetime] = None) -> datetime:
    """Midnight (UTC) starting the day after value (default: now)."""
    return start_of_utc_day(value) + timedelta(days=1)


def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string for a datetime column, or None."""
    value = ensure_utc(value)
    return value.isoformat() if value else None
