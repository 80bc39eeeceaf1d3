"""Resolution of trailing whole-day ranges ending at the last complete day."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Optional

from pageview_service.domain.interfaces import IClock
from pageview_service.domain.models import DateRange
from pageview_service.utils.validators import validate_num_days


class SystemClock(IClock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(IClock):
    """Clock pinned to a given instant; used by tests and backfills."""

    def __init__(self, instant: datetime) -> None:
        self._instant = self._as_utc(instant)

    @classmethod
    def for_last_complete_day(cls, day: date) -> "FixedClock":
        """Build a clock whose last complete day is ``day``."""

        return cls(datetime.combine(day + timedelta(days=1), time(), timezone.utc))

    def set_last_complete_day(self, day: date) -> None:
        self._instant = datetime.combine(
            day + timedelta(days=1), time(), timezone.utc
        )

    def now(self) -> datetime:
        return self._instant

    @staticmethod
    def _as_utc(instant: datetime) -> datetime:
        if instant.tzinfo is None:
            return instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(timezone.utc)


def last_complete_day(now: datetime) -> date:
    """Return the most recent UTC day that has fully elapsed at ``now``."""

    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date() - timedelta(days=1)


class DateRangeResolver:
    """Computes and caches ``[end - num_days + 1, end]`` day ranges.

    The cache is anchored to the last complete day it was computed for and
    is dropped as soon as the clock reports a different one.
    """

    def __init__(self, clock: Optional[IClock] = None) -> None:
        self._clock = clock or SystemClock()
        self._anchor: Optional[date] = None
        self._cache: Dict[int, DateRange] = {}

    @property
    def last_complete_day(self) -> date:
        return last_complete_day(self._clock.now())

    def resolve(self, num_days: int) -> DateRange:
        validate_num_days(num_days)
        end = self.last_complete_day
        if end != self._anchor:
            self.invalidate()
            self._anchor = end

        cached = self._cache.get(num_days)
        if cached is not None:
            return cached

        date_range = DateRange(start=end - timedelta(days=num_days - 1), end=end)
        self._cache[num_days] = date_range
        return date_range

    def invalidate(self) -> None:
        self._anchor = None
        self._cache.clear()
