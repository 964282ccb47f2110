"""
UTC-first datetime utilities for Glucose Insight Service.

- All datetimes are stored and processed in UTC
- SQLite stores them as fixed-width ISO 8601 strings ("2024-01-15T10:30:00Z"),
  so lexicographic comparison in SQL matches chronological order
- Naive datetimes coming from clients are assumed to already be UTC

Usage:
    from core.datetime_utils import utc_now, parse_datetime, format_iso

    now = utc_now()
    dt = parse_datetime("2024-01-15T10:30:00+05:30")  # Converts to UTC
    iso_str = format_iso(dt)  # "2024-01-15T05:00:00Z"
"""
import calendar
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)


# =============================================================================
# CORE UTILITIES
# =============================================================================

def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If datetime is naive (no timezone), assumes it's already UTC
    - If datetime has timezone, converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =============================================================================
# PARSING
# =============================================================================

def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse a datetime value to UTC datetime.

    Accepts datetime objects, ISO 8601 strings (with or without timezone,
    with a 'Z' suffix) and SQLite's "YYYY-MM-DD HH:MM:SS" format.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_utc(value)

    if not isinstance(value, str):
        raise ValueError(f"Expected datetime or string, got {type(value).__name__}")

    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        return to_utc(datetime.fromisoformat(value))
    except ValueError:
        pass

    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise ValueError(f"Cannot parse datetime: '{value}'")


def parse_datetime_safe(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse datetime with graceful error handling.

    Returns:
        Parsed datetime in UTC, or None if parsing fails or input is None.
    """
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        logger.warning(f"Failed to parse datetime '{value}': {e}")
        return None


# =============================================================================
# FORMATTING
# =============================================================================

def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with 'Z' suffix, second precision.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# PERIODS & WINDOWS
# =============================================================================

def period_bounds(year: int, month: Optional[int] = None) -> Tuple[datetime, datetime]:
    """
    Get the inclusive UTC bounds of a calendar month, or of a whole year.

    Args:
        year: Calendar year.
        month: Month number (1-12). When omitted the whole year is covered.

    Returns:
        (start, end) where start is the first second of the period and end
        is the last second of the period.

    Example:
        >>> period_bounds(2025, 2)
        (datetime(2025, 2, 1, 0, 0, tzinfo=utc), datetime(2025, 2, 28, 23, 59, 59, tzinfo=utc))
    """
    if month is None:
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    else:
        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        end = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return start, end


def window_bucket(dt: datetime, window: timedelta) -> int:
    """
    Index of the fixed-size time bucket containing dt.

    Two instants in the same bucket are always less than one window apart.
    """
    seconds = int(window.total_seconds())
    if seconds <= 0:
        raise ValueError("window must be positive")
    return int(to_utc(dt).timestamp()) // seconds
