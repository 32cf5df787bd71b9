"""Time sources used by the session scheduler and the daily reset gate."""

from __future__ import annotations

import time
from datetime import date, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    """Anything that can tell the calendar day and a steady seconds counter."""

    def today(self) -> date: ...

    def monotonic(self) -> float: ...


class SystemClock:
    """The real clock: local calendar date and ``time.monotonic``."""

    def today(self) -> date:
        return date.today()

    def monotonic(self) -> float:
        return time.monotonic()


class ManualClock:
    """A clock that only moves when told to. Used by tests and scripted runs."""

    def __init__(self, today: Optional[date] = None, start: float = 0.0) -> None:
        self._today = today or date(2024, 1, 1)
        self._now = start

    def today(self) -> date:
        return self._today

    def monotonic(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        """Move the steady counter forward and return the new value."""
        if seconds < 0:
            raise ValueError("A monotonic clock cannot go backwards.")
        self._now += seconds
        return self._now

    def set_today(self, day: date) -> None:
        self._today = day

    def next_day(self) -> date:
        self._today += timedelta(days=1)
        return self._today


def day_string(day: date) -> str:
    """Day-level string form of a date, e.g. ``Tue Jan 02 2024``."""
    return day.strftime("%a %b %d %Y")
