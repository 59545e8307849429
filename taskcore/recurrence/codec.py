"""Convert RecurrenceRule to and from its compact RRULE-like text form.

The text form is what gets stored on a recurring parent task, e.g.
`FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;UNTIL=20241231`. Decoding is tolerant:
fields are matched independently, so missing or reordered fields fall back to
their defaults.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import List, Optional

from pydantic import ValidationError

from taskcore.errors import FormatError
from taskcore.models.recurrence import RecurrenceFrequency, RecurrenceRule, Weekday


_FREQ_MAP: dict[RecurrenceFrequency, str] = {
    RecurrenceFrequency.DAILY: "DAILY",
    RecurrenceFrequency.WEEKLY: "WEEKLY",
    RecurrenceFrequency.MONTHLY: "MONTHLY",
    RecurrenceFrequency.YEARLY: "YEARLY",
}
_FREQ_TOKENS: dict[str, RecurrenceFrequency] = {v: k for k, v in _FREQ_MAP.items()}

_WD_MAP: dict[Weekday, str] = {
    Weekday.MO: "MO",
    Weekday.TU: "TU",
    Weekday.WE: "WE",
    Weekday.TH: "TH",
    Weekday.FR: "FR",
    Weekday.SA: "SA",
    Weekday.SU: "SU",
}
_WD_TOKENS: dict[str, Weekday] = {v: k for k, v in _WD_MAP.items()}

_PREFIX = "RRULE:"
_UNTIL_FORMAT = "%Y%m%d"

# A comma followed by "KEY=" separates fields; commas inside BYDAY values do not.
_FIELD_COMMA_RE = re.compile(r",(?=[A-Z]+=[^=])")
_FREQ_RE = re.compile(r"FREQ=([A-Z]+)")
_INTERVAL_RE = re.compile(r"INTERVAL=(\d+)")
_BYDAY_RE = re.compile(r"BYDAY=([A-Z,]+)")
_UNTIL_RE = re.compile(r"UNTIL=(\d{8})")
_COUNT_RE = re.compile(r"COUNT=(\d+)")


def encode(rule: RecurrenceRule) -> str:
    """Serialize a rule (without the leading 'RRULE:' prefix)."""
    parts: List[str] = [f"FREQ={_FREQ_MAP[RecurrenceFrequency(rule.frequency)]}"]
    if rule.interval and int(rule.interval) > 1:
        parts.append(f"INTERVAL={int(rule.interval)}")
    if rule.by_day:
        parts.append("BYDAY=" + ",".join(_WD_MAP[Weekday(d)] for d in rule.by_day))
    if rule.until is not None:
        until: date = rule.until
        parts.append(f"UNTIL={until.strftime(_UNTIL_FORMAT)}")
    if rule.count is not None and rule.count > 0:
        parts.append(f"COUNT={int(rule.count)}")
    return ";".join(parts)


def _normalize(text: str) -> str:
    clean = text.strip()
    if clean.upper().startswith(_PREFIX):
        clean = clean[len(_PREFIX):]
    return _FIELD_COMMA_RE.sub(";", clean.upper())


def decode(text: Optional[str]) -> Optional[RecurrenceRule]:
    """Parse an encoded rule.

    Returns None for a null/blank string ("no rule"). Raises FormatError for an
    unrecognized FREQ token, an invalid UNTIL date, or a rule carrying both
    UNTIL and COUNT.
    """
    if text is None or not text.strip():
        return None

    clean = _normalize(text)

    frequency = RecurrenceFrequency.DAILY
    m = _FREQ_RE.search(clean)
    if m:
        token = m.group(1)
        if token not in _FREQ_TOKENS:
            raise FormatError(f"Unsupported recurrence frequency: {token}")
        frequency = _FREQ_TOKENS[token]

    interval = 1
    m = _INTERVAL_RE.search(clean)
    if m:
        interval = max(int(m.group(1)), 1)

    by_day: List[Weekday] = []
    m = _BYDAY_RE.search(clean)
    if m:
        for token in m.group(1).split(","):
            day = _WD_TOKENS.get(token.strip())
            if day is not None:
                by_day.append(day)

    until: Optional[date] = None
    m = _UNTIL_RE.search(clean)
    if m:
        try:
            until = datetime.strptime(m.group(1), _UNTIL_FORMAT).date()
        except ValueError as e:
            raise FormatError(f"Invalid UNTIL date in recurrence rule: {text}") from e

    count: Optional[int] = None
    m = _COUNT_RE.search(clean)
    if m:
        count = int(m.group(1)) or None

    try:
        return RecurrenceRule(
            frequency=frequency,
            interval=interval,
            by_day=by_day,
            until=until,
            count=count,
        )
    except ValidationError as e:
        raise FormatError(f"Invalid recurrence rule: {text}") from e


def same_rule(encoded: Optional[str], rule: Optional[RecurrenceRule]) -> bool:
    """Compare a stored encoding with a structured rule, semantically.

    A stored string that no longer decodes counts as different.
    """
    try:
        return decode(encoded) == rule
    except FormatError:
        return False
