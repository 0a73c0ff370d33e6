"""
Pydantic schemas for event recurrence specifications.

A recurrence is a tagged union discriminated by ``type``. Each variant is
its own model carrying only its own parameters, so a weekday cannot be
attached to a plain monthly recurrence and so on.

Range checks live here, at the boundary: the occurrence generator trusts
whatever these models accept.

Weekdays are numbered 0=Sunday .. 6=Saturday.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _RecurrenceBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SingleRecurrence(_RecurrenceBase):
    """One-off event: the anchor is the only occurrence."""
    type: Literal["single"] = "single"


class WeeklyRecurrence(_RecurrenceBase):
    """Same weekday every week."""
    type: Literal["weekly"] = "weekly"
    day_of_week: int = Field(..., ge=0, le=6)
    occurrence_count: int = Field(default=12, ge=1, le=104)


class MonthlyRecurrence(_RecurrenceBase):
    """Same day of month every month (clamped to short months)."""
    type: Literal["monthly"] = "monthly"
    day_of_month: int = Field(..., ge=1, le=31)
    occurrence_count: int = Field(default=12, ge=1, le=36)


class MonthlyWeekdayRecurrence(_RecurrenceBase):
    """The nth weekday of every month, e.g. the 3rd Sunday."""
    type: Literal["monthly_weekday"] = "monthly_weekday"
    weekday: int = Field(..., ge=0, le=6)
    nth: int = Field(default=1, ge=1, le=5)
    occurrence_count: int = Field(default=12, ge=1, le=36)


class AnnualRecurrence(_RecurrenceBase):
    """Same calendar day every year (clamped to short months)."""
    type: Literal["annual"] = "annual"
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)
    occurrence_count: int = Field(default=5, ge=1, le=10)


class SpecificRecurrence(_RecurrenceBase):
    """Explicit list of start timestamps."""
    type: Literal["specific"] = "specific"
    dates: List[datetime] = Field(default_factory=list)

    @field_validator("dates")
    @classmethod
    def sort_unique(cls, v: List[datetime]) -> List[datetime]:
        """Store as an ordered set."""
        return sorted(set(v))


RecurrenceSpec = Annotated[
    Union[
        SingleRecurrence,
        WeeklyRecurrence,
        MonthlyRecurrence,
        MonthlyWeekdayRecurrence,
        AnnualRecurrence,
        SpecificRecurrence,
    ],
    Field(discriminator="type"),
]

RECURRENCE_TYPES = (
    "single",
    "weekly",
    "monthly",
    "monthly_weekday",
    "annual",
    "specific",
)

recurrence_adapter = TypeAdapter(RecurrenceSpec)


def recurrence_from_dict(data: dict) -> RecurrenceSpec:
    """
    Load a stored recurrence document.

    Raises:
        pydantic.ValidationError: If the document does not match any variant
    """
    return recurrence_adapter.validate_python(data or {"type": "single"})


def recurrence_to_dict(spec: RecurrenceSpec) -> dict:
    """Serialize a recurrence for storage (JSON-safe)."""
    return spec.model_dump(mode="json")
