"""
Occurrence generation for recurring events.

Expands a RecurrenceSpec and an anchor timestamp (the event's start_at) into
the concrete list of occurrence timestamps. Everything here is pure: no I/O,
no clock reads.

Edge-case policy:
- Day-of-month overflow is clamped to the last day of the month
  (monthly on the 31st lands on Feb 28/29, Apr 30, ...)
- A month without an nth weekday (5th Friday) yields no occurrence; the
  date is never moved into a neighbouring month
- Every generated occurrence except explicit dates keeps the anchor's
  hour:minute

Also provides:
- normalize_recurrence: fills missing parameters from the anchor
- format_recurrence: human label for a recurrence
- parse_monthly_pattern / format_pattern_label: best-effort reading of
  free-text labels such as "3rd Sunday" or "3º domingo" (legacy display
  only, never used for computation)
"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from backend.src.schemas.recurrence import (
    AnnualRecurrence,
    MonthlyRecurrence,
    MonthlyWeekdayRecurrence,
    RECURRENCE_TYPES,
    RecurrenceSpec,
    SingleRecurrence,
    SpecificRecurrence,
    WeeklyRecurrence,
    recurrence_adapter,
)
from backend.src.services.exceptions import ValidationError
from backend.src.utils.dates import days_in_month, parse_timestamp, shift_month, sunday_weekday


WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# Legacy payloads used camelCase keys and per-variant count names
_FIELD_ALIASES = {
    "dayOfWeek": "day_of_week",
    "dayOfMonth": "day_of_month",
    "occurrenceCount": "occurrence_count",
    "generateWeeks": "occurrence_count",
    "generateMonths": "occurrence_count",
    "generateYears": "occurrence_count",
}


def _at_anchor_time(anchor: datetime, year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, anchor.hour, anchor.minute, tzinfo=anchor.tzinfo)


def nth_weekday_of_month(year: int, month: int, weekday: int, nth: int) -> Optional[int]:
    """
    Day of month of the nth ``weekday`` (0=Sunday), or None if the month
    has fewer than ``nth`` such weekdays.
    """
    first_weekday = sunday_weekday(datetime(year, month, 1))
    day = 1 + ((weekday - first_weekday + 7) % 7) + (nth - 1) * 7
    if day > days_in_month(year, month):
        return None
    return day


def generate_occurrences(anchor: datetime, spec: RecurrenceSpec) -> List[datetime]:
    """
    Expand a recurrence into its ordered occurrence timestamps.

    Args:
        anchor: Reference timestamp (the event's start_at)
        spec: Validated recurrence specification

    Returns:
        Finite list of occurrences, ascending
    """
    if isinstance(spec, SingleRecurrence):
        return [anchor]

    if isinstance(spec, SpecificRecurrence):
        return sorted(spec.dates)

    occurrences: List[datetime] = []

    if isinstance(spec, WeeklyRecurrence):
        cursor = anchor
        while sunday_weekday(cursor) != spec.day_of_week:
            cursor += timedelta(days=1)
        first = _at_anchor_time(anchor, cursor.year, cursor.month, cursor.day)
        occurrences = [first + timedelta(days=7 * i) for i in range(spec.occurrence_count)]

    elif isinstance(spec, MonthlyRecurrence):
        for i in range(spec.occurrence_count):
            year, month = shift_month(anchor.year, anchor.month, i)
            day = min(spec.day_of_month, days_in_month(year, month))
            occurrences.append(_at_anchor_time(anchor, year, month, day))

    elif isinstance(spec, MonthlyWeekdayRecurrence):
        for i in range(spec.occurrence_count):
            year, month = shift_month(anchor.year, anchor.month, i)
            day = nth_weekday_of_month(year, month, spec.weekday, spec.nth)
            if day is not None:
                occurrences.append(_at_anchor_time(anchor, year, month, day))

    elif isinstance(spec, AnnualRecurrence):
        for i in range(spec.occurrence_count):
            year = anchor.year + i
            day = min(spec.day, days_in_month(year, spec.month))
            occurrences.append(_at_anchor_time(anchor, year, spec.month, day))

    else:
        raise TypeError(f"Unsupported recurrence: {type(spec).__name__}")

    return occurrences


def get_span_days(start_at: datetime, end_at: Optional[datetime] = None) -> int:
    """Number of calendar days an event covers (at least 1)."""
    if end_at is None:
        return 1
    return max(1, (end_at.date() - start_at.date()).days + 1)


def generate_event_dates(
    start_at: datetime,
    spec: RecurrenceSpec,
    end_at: Optional[datetime] = None,
) -> List[datetime]:
    """
    Occurrences expanded over the event's span.

    A weekend meet running Saturday to Sunday contributes both days for
    each occurrence.
    """
    span = get_span_days(start_at, end_at)
    dates = []
    for occurrence in generate_occurrences(start_at, spec):
        dates.extend(occurrence + timedelta(days=offset) for offset in range(span))
    return sorted(dates)


def normalize_recurrence(raw: Any, anchor: datetime) -> RecurrenceSpec:
    """
    Build a validated recurrence from a raw payload.

    Missing parameters default from the anchor (weekday, day of month, month)
    and to the variant's default count. A missing ``type`` means "single".

    Raises:
        ValidationError: Unknown type or out-of-range parameters
    """
    if isinstance(raw, BaseModel):
        return raw

    data: Dict[str, Any] = {}
    if isinstance(raw, dict):
        for key, value in raw.items():
            if value is None:
                continue
            data[_FIELD_ALIASES.get(key, key)] = value

    kind = data.get("type") or "single"
    if kind not in RECURRENCE_TYPES:
        raise ValidationError(f"Unknown recurrence type: {kind}", field="recurrence")
    data["type"] = kind

    anchor_weekday = sunday_weekday(anchor)
    if kind == "weekly":
        data.setdefault("day_of_week", anchor_weekday)
    elif kind == "monthly":
        data.setdefault("day_of_month", anchor.day)
    elif kind == "monthly_weekday":
        data.setdefault("weekday", data.pop("day_of_week", anchor_weekday))
    elif kind == "annual":
        data.setdefault("month", anchor.month)
        data.setdefault("day", anchor.day)
    elif kind == "specific":
        data["dates"] = _parse_specific_dates(data.get("dates"), anchor)
    else:
        data = {"type": "single"}

    try:
        return recurrence_adapter.validate_python(data)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'recurrence'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {kind} recurrence: {details}", field="recurrence")


def _parse_specific_dates(raw: Any, anchor: datetime) -> List[datetime]:
    if raw is None:
        return []
    values = [raw] if isinstance(raw, (str, datetime)) else list(raw)

    dates = []
    for value in values:
        try:
            parsed = parse_timestamp(value, default_time=anchor.time().replace(second=0, microsecond=0))
        except ValueError:
            raise ValidationError(f"Invalid recurrence date: {value}", field="recurrence")
        if parsed is not None:
            dates.append(parsed)
    return dates


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 3 -> '3rd', 4 -> '4th'."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_recurrence(spec: RecurrenceSpec, span_days: int = 1) -> str:
    """
    Human label for a recurrence.

    >>> format_recurrence(MonthlyWeekdayRecurrence(weekday=0, nth=3))
    '3rd Sunday of each month for 12 months'
    """
    suffix = f" ({span_days} days each)" if span_days > 1 else ""

    if isinstance(spec, WeeklyRecurrence):
        label = f"Every {WEEKDAY_NAMES[spec.day_of_week]} for {spec.occurrence_count} weeks"
    elif isinstance(spec, MonthlyRecurrence):
        label = f"Every month on day {spec.day_of_month} for {spec.occurrence_count} months"
    elif isinstance(spec, MonthlyWeekdayRecurrence):
        label = (
            f"{ordinal(spec.nth)} {WEEKDAY_NAMES[spec.weekday]} of each month "
            f"for {spec.occurrence_count} months"
        )
    elif isinstance(spec, AnnualRecurrence):
        label = (
            f"Every year on {MONTH_NAMES[spec.month - 1]} {spec.day} "
            f"for {spec.occurrence_count} years"
        )
    elif isinstance(spec, SpecificRecurrence):
        label = f"{len(spec.dates)} specific date(s)"
    else:
        label = "One-time event"

    return label + suffix


# ============================================================================
# Legacy pattern labels
# ============================================================================


@dataclass(frozen=True)
class MonthlyPattern:
    """nth weekday extracted from a free-text label."""
    nth: int
    weekday: int
    label: str


_WEEKDAY_WORDS = {
    "sunday": 0, "domingo": 0,
    "monday": 1, "segunda": 1,
    "tuesday": 2, "terca": 2,
    "wednesday": 3, "quarta": 3,
    "thursday": 4, "quinta": 4,
    "friday": 5, "sexta": 5,
    "saturday": 6, "sabado": 6,
}

_ORDINAL_WORDS = {"first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5}


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def parse_monthly_pattern(label: str) -> Optional[MonthlyPattern]:
    """
    Read "nth weekday" out of a free-text label.

    Understands digits with or without English/Portuguese ordinal marks
    ("3rd", "3º", "3o") and English ordinal words ("third"), followed or
    preceded by an English or Portuguese weekday name.

    Returns:
        MonthlyPattern, or None when either part is missing or nth is not 1..5
    """
    if not label:
        return None

    folded = _fold(label)

    nth = None
    match = re.search(r"(\d+)", folded)
    if match:
        nth = int(match.group(1))
    else:
        for word, value in _ORDINAL_WORDS.items():
            if re.search(rf"\b{word}\b", folded):
                nth = value
                break

    weekday = None
    for word, value in _WEEKDAY_WORDS.items():
        if re.search(rf"\b{word}", folded):
            weekday = value
            break

    if nth is None or weekday is None or not 1 <= nth <= 5:
        return None

    return MonthlyPattern(nth=nth, weekday=weekday, label=label)


def format_pattern_label(label: str) -> Optional[str]:
    """
    Canonical label for a legacy pattern text.

    >>> format_pattern_label("3º domingo do mês")
    '3rd Sunday'
    """
    pattern = parse_monthly_pattern(label)
    if pattern is None:
        return None
    return f"{ordinal(pattern.nth)} {WEEKDAY_NAMES[pattern.weekday]}"
