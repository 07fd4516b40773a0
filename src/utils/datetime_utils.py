"""
Centralized datetime and timezone utilities.

All datetime handling should use these functions to ensure consistency
between timezone-aware and timezone-naive datetimes across the application.
Services never read the wall clock directly: they take a Clock so tests can
place "now" anywhere in a phase.
"""

from datetime import datetime
from typing import Callable, Optional
import pytz

from config import settings

Clock = Callable[[], datetime]


def get_local_tz() -> pytz.BaseTzInfo:
    """Get the configured local timezone."""
    return pytz.timezone(settings.timezone)


def get_local_now() -> datetime:
    """Get current time in local timezone (naive)."""
    local_tz = get_local_tz()
    return datetime.now(local_tz).replace(tzinfo=None)


def to_naive_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive local time for database storage.

    PostgreSQL TIMESTAMP WITHOUT TIME ZONE expects naive datetimes.
    This converts timezone-aware datetimes to local time and strips tzinfo.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive datetime in local timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        local_dt = dt.astimezone(get_local_tz())
        return local_dt.replace(tzinfo=None)

    # Already naive, assume it's in local time
    return dt


def to_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert naive datetime to timezone-aware UTC.

    Useful for API responses and external services that expect aware datetimes.

    Args:
        dt: Naive datetime (assumed to be in local time)

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(pytz.UTC)

    local_dt = get_local_tz().localize(dt)
    return local_dt.astimezone(pytz.UTC)


def resolve_now(clock: Optional[Clock] = None, now: Optional[datetime] = None) -> datetime:
    """Pick the explicit now, else the clock, else local wall time (naive local)."""
    if now is not None:
        return to_naive_local(now)
    if clock is not None:
        return to_naive_local(clock())
    return get_local_now()


def fixed_clock(moment: datetime) -> Clock:
    """A clock frozen at one moment."""
    frozen = to_naive_local(moment)
    return lambda: frozen
