"""Program day arithmetic — pure business logic.

All dates are civil dates in the program's home timezone. The clock never
builds dates from naive UTC, otherwise users would see the day counter
flip at the wrong local midnight.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from coachbot.data.models import PROGRAM_DAYS


def clamp_day(day: int) -> int:
    if day < 1:
        return 1
    if day > PROGRAM_DAYS:
        return PROGRAM_DAYS
    return day


def days_between(start: date, today: date) -> int:
    """Whole calendar days from *start* to *today* (negative if start is later)."""
    return (today - start).days


def current_day(start: date, today: date) -> int:
    """1-based program day for *today*, clamped to [1, PROGRAM_DAYS]."""
    return clamp_day(days_between(start, today) + 1)


def build_start_from_day(day: int, today: date) -> date:
    """Inverse of current_day(): the start date that makes *today* day *day*."""
    return today - timedelta(days=day - 1)


class ProgramClock:
    """Source of "today" in a fixed named timezone.

    Args:
        timezone: IANA zone name, e.g. "Asia/Taipei".
        now: Optional callable returning an aware datetime, for tests.
    """

    def __init__(
        self,
        timezone: str = "Asia/Taipei",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._tz = ZoneInfo(timezone)
        self._now = now or (lambda: datetime.now(self._tz))

    def today(self) -> date:
        return self._now().astimezone(self._tz).date()

    def current_day(self, start: date) -> int:
        return current_day(start, self.today())

    def build_start_from_day(self, day: int) -> date:
        return build_start_from_day(day, self.today())
