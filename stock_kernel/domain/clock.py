"""
Clock -- where "today" comes from.

Expiry status is the only time-dependent part of a stock query: a batch is
expired when its expiry date is before today, and expiring soon when it
falls inside the configured window.  Services take a Clock in their
constructor and ask it for ``today()`` once per query; engines receive the
resulting date as an argument and never look at the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo

_DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current time.  ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date of ``now()`` in the clock's own timezone."""
        return self.now().date()


class SystemClock(Clock):
    """
    Wall-clock time.

    ``tz`` decides where the day boundary falls for expiry checks; a
    distributor running on local business days passes its own zone.
    """

    def __init__(self, tz: tzinfo = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """Clock for tests: time only moves when the test moves it."""

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or _DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        """Move forward by whole days, e.g. to walk a batch into its expiry window."""
        self._current += timedelta(days=days)
