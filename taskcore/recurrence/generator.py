"""Expand a recurrence rule into concrete occurrence dates.

Each frequency has a strategy that decides, for a cursor position, whether the
date is an occurrence and where the cursor moves next. Generation is eager and
bounded by the horizon, the rule's own until/count, and an iteration ceiling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from taskcore.models.constants import MAX_GENERATION_ITERATIONS, RECURRENCE_HORIZON_YEARS
from taskcore.models.recurrence import RecurrenceFrequency, RecurrenceRule, Weekday


@dataclass(frozen=True)
class _Cursor:
    """Iteration state. `step` counts advances from the anchor."""
    current: date
    step: int = 0


@dataclass(frozen=True)
class _Strategy:
    includes: Callable[[date, date, RecurrenceRule], bool]
    advance: Callable[[_Cursor, date, RecurrenceRule], _Cursor]


def _always(current: date, anchor: date, rule: RecurrenceRule) -> bool:
    return True


def _advance_days(cursor: _Cursor, anchor: date, rule: RecurrenceRule) -> _Cursor:
    return _Cursor(cursor.current + timedelta(days=rule.interval), cursor.step + 1)


def _weekly_includes(current: date, anchor: date, rule: RecurrenceRule) -> bool:
    if not rule.by_day:
        return True  # Cursor only ever lands on the anchor's weekday
    return Weekday.from_date(current) in rule.by_day


def _weekly_advance(cursor: _Cursor, anchor: date, rule: RecurrenceRule) -> _Cursor:
    if not rule.by_day:
        return _Cursor(cursor.current + timedelta(weeks=rule.interval), cursor.step + 1)
    nxt = cursor.current + timedelta(days=1)
    # Completed a 7-day cycle relative to the anchor: skip the off weeks.
    if nxt.weekday() == anchor.weekday() and rule.interval > 1:
        nxt = nxt + timedelta(weeks=rule.interval - 1)
    return _Cursor(nxt, cursor.step + 1)


def _monthly_includes(current: date, anchor: date, rule: RecurrenceRule) -> bool:
    return current == anchor or current.day == anchor.day


def _monthly_advance(cursor: _Cursor, anchor: date, rule: RecurrenceRule) -> _Cursor:
    # Offsets are taken from the anchor so a clamped short month (31 -> 30) does
    # not drift later occurrences; the clamped date itself fails _monthly_includes.
    step = cursor.step + 1
    return _Cursor(anchor + relativedelta(months=step * rule.interval), step)


def _yearly_includes(current: date, anchor: date, rule: RecurrenceRule) -> bool:
    return current == anchor or (current.month, current.day) == (anchor.month, anchor.day)


def _yearly_advance(cursor: _Cursor, anchor: date, rule: RecurrenceRule) -> _Cursor:
    step = cursor.step + 1
    return _Cursor(anchor + relativedelta(years=step * rule.interval), step)


_STRATEGIES: Dict[RecurrenceFrequency, _Strategy] = {
    RecurrenceFrequency.DAILY: _Strategy(_always, _advance_days),
    RecurrenceFrequency.WEEKLY: _Strategy(_weekly_includes, _weekly_advance),
    RecurrenceFrequency.MONTHLY: _Strategy(_monthly_includes, _monthly_advance),
    RecurrenceFrequency.YEARLY: _Strategy(_yearly_includes, _yearly_advance),
}


def default_horizon(anchor: date) -> date:
    """Safety bound used when a rule has no until/count of its own."""
    return anchor + relativedelta(years=RECURRENCE_HORIZON_YEARS)


def generate_dates(
    anchor: date,
    rule: RecurrenceRule,
    horizon: Optional[date] = None,
    *,
    max_iterations: int = MAX_GENERATION_ITERATIONS,
) -> List[date]:
    """Ordered occurrence dates for `rule` starting at `anchor`, oldest first.

    The stop date is min(horizon, rule.until); both bounds are inclusive.
    An empty list means nothing matched; callers fall back to the anchor.
    """
    if horizon is None:
        horizon = default_horizon(anchor)
    stop = min(horizon, rule.until) if rule.until is not None else horizon
    strategy = _STRATEGIES[RecurrenceFrequency(rule.frequency)]

    dates: List[date] = []
    cursor = _Cursor(anchor)
    iterations = 0
    while cursor.current <= stop and iterations < max_iterations:
        iterations += 1
        if rule.count is not None and len(dates) >= rule.count:
            break
        if strategy.includes(cursor.current, anchor, rule):
            dates.append(cursor.current)
        cursor = strategy.advance(cursor, anchor, rule)
    return dates


def occurrence_dates(anchor: date, rule: RecurrenceRule) -> List[date]:
    """Dates for a new series: generated over the default horizon, never empty."""
    return generate_dates(anchor, rule, default_horizon(anchor)) or [anchor]
