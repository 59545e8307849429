"""Recurrence rule model for taskcore.

Canonical internal representation of a repeating task. The compact RRULE-like
string stored on a parent task is a serialization detail handled by
`taskcore.recurrence.codec`.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Weekday(str, Enum):
    MO = "mo"
    TU = "tu"
    WE = "we"
    TH = "th"
    FR = "fr"
    SA = "sa"
    SU = "su"

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        # Python weekday: Monday=0 ... Sunday=6
        return _WEEKDAY_ORDER[d.weekday()]


_WEEKDAY_ORDER = [Weekday.MO, Weekday.TU, Weekday.WE, Weekday.TH, Weekday.FR, Weekday.SA, Weekday.SU]


class RecurrenceRule(BaseModel):
    """Immutable recurrence rule.

    Notes:
    - `by_day` only matters for WEEKLY; empty means "same weekday as the anchor".
    - At most one of `until` (inclusive end date) and `count` may be set.
    """

    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency
    interval: int = Field(1, ge=1, description="Every N units (days/weeks/months/years)")
    by_day: Tuple[Weekday, ...] = Field(default=(), description="For weekly recurrence: weekdays on which it occurs")
    until: Optional[date] = None
    count: Optional[int] = Field(None, ge=1, description="Maximum number of occurrences")

    @field_validator("by_day", mode="before")
    @classmethod
    def _normalize_by_day(cls, v):
        if v is None:
            return ()
        # Deduplicate and order Monday -> Sunday so equal sets compare equal
        days = {d if isinstance(d, Weekday) else Weekday(str(d).lower()) for d in v}
        return tuple(d for d in _WEEKDAY_ORDER if d in days)

    @model_validator(mode="after")
    def _validate_termination(self):
        if self.until is not None and self.count is not None:
            raise ValueError("until and count are mutually exclusive")
        return self
