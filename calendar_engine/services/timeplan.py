"""Date and time-of-day parsing helpers shared by adapters and the availability index."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional


def parse_time_string(value: Any) -> Optional[time]:
    """
    Parse a time-of-day value.

    Accepts ``time`` and ``datetime`` objects and "HH:MM" / "HH:MM:SS" strings.
    Blank strings and placeholders ("---") yield None.

    Args:
        value: Raw value from a source row

    Returns:
        time (seconds dropped) or None

    Raises:
        ValueError: If a non-blank string is not a valid time
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    text = str(value).strip()
    if not text or text == "---":
        return None

    parts = text.split(":")
    if len(parts) < 2 or len(parts) > 3:
        raise ValueError(f"Invalid time string: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1][:2])
    return time(hours, minutes)


def parse_date_value(value: Any) -> Optional[date]:
    """Parse a date from a date/datetime object or an ISO string (time part ignored)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def split_datetime(value: Any) -> tuple[Optional[date], Optional[time]]:
    """Split an ISO datetime ("2024-03-01T10:30:00") into date and time."""
    if value is None:
        return None, None
    if isinstance(value, datetime):
        return value.date(), value.time().replace(second=0, microsecond=0)

    text = str(value).strip()
    if not text:
        return None, None
    day = parse_date_value(text)
    separator = "T" if "T" in text else " "
    if separator in text:
        return day, parse_time_string(text.split(separator, 1)[1][:8])
    return day, None


def normalize_time_text(value: Any) -> str:
    """Normalize to "HH:MM" (drops seconds); blank for missing values."""
    parsed = parse_time_string(value)
    return parsed.strftime("%H:%M") if parsed else ""


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute
