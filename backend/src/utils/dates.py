"""
Timestamp parsing helpers.

Event timestamps are wall-clock times at the venue. Inputs carrying a UTC
offset keep their wall-clock reading and lose the offset, the same way the
calendar stores event_date/start_time without conversion.
"""

import calendar
import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_timestamp(value: Any, default_time: Optional[time] = None) -> Optional[datetime]:
    """
    Parse a timestamp from user input.

    Accepts datetime/date objects and ISO 8601 strings, including
    ``YYYY-MM-DD HH:MM`` and bare ``YYYY-MM-DD`` (which takes
    ``default_time``, midnight when omitted).

    Args:
        value: Raw input value
        default_time: Time of day for date-only inputs

    Returns:
        Naive datetime, or None for empty input

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, default_time or time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _DATE_ONLY.match(text):
            parsed = datetime.combine(date.fromisoformat(text), default_time or time())
        else:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    return parsed.replace(tzinfo=None)


def days_in_month(year: int, month: int) -> int:
    """Number of days in a calendar month."""
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """
    Move a (year, month) pair by ``offset`` calendar months.

    >>> shift_month(2026, 11, 3)
    (2027, 2)
    """
    index = month - 1 + offset
    return year + index // 12, index % 12 + 1


def sunday_weekday(value: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form audit columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
