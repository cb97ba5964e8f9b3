"""
Serialization helper functions for timestamps and stored documents.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def serialize_utc_datetime(dt: datetime) -> datetime:
    """
    Convert naive UTC datetime to timezone-aware before serialization.

    Args:
        dt: Datetime object (naive or timezone-aware)

    Returns:
        Timezone-aware datetime
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    """
    Parse a stored timestamp into an aware UTC datetime.

    Accepts datetimes, ISO 8601 strings (including a trailing "Z") and epoch
    milliseconds, which is how browser-side records were stamped.

    Args:
        value: Raw timestamp
        default: Returned when value is missing or unparseable (epoch if None)
    """
    fallback = default or datetime.fromtimestamp(0, tz=timezone.utc)
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return serialize_utc_datetime(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return serialize_utc_datetime(datetime.fromisoformat(text))
        except ValueError:
            return fallback
    return fallback


def isoformat_utc(dt: datetime) -> str:
    return serialize_utc_datetime(dt).isoformat()
