"""Clock capability injected wherever "now" or "today" is needed."""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timezone
from typing import Optional, Union


class Clock(ABC):
    """Source of the current date/time. Timestamps are naive UTC."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock(Clock):
    """Deterministic clock for tests and replays."""

    def __init__(self, fixed: Union[date, datetime]):
        if not isinstance(fixed, datetime):
            fixed = datetime.combine(fixed, time(0, 0))
        self._now = fixed

    def now(self) -> datetime:
        return self._now


def resolve_clock(clock: Optional[Clock]) -> Clock:
    return clock if clock is not None else SystemClock()
