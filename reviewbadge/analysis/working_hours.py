"""
Working-hours clock.
Measures elapsed time only inside working periods (weekdays, office hours).
"""
import logging
from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_WORKING_DAYS = (0, 1, 2, 3, 4)  # Monday - Friday


class WorkCalendar:
    """
    A weekly work calendar with the same working interval on every working day.

    Datetimes are evaluated as wall-clock time in ``tz`` (the local timezone
    when ``tz`` is None). Naive datetimes are taken to already be wall-clock
    time in that zone.
    """

    def __init__(self, start_hour: int = 9, end_hour: int = 17,
                 working_days: Iterable[int] = DEFAULT_WORKING_DAYS, tz: Optional[tzinfo] = None):
        if not 0 <= start_hour < end_hour <= 24:
            raise ValueError(f"Invalid working hours: {start_hour}-{end_hour}")
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.working_days = frozenset(working_days)
        self.tz = tz

    @classmethod
    def from_settings(cls, settings) -> 'WorkCalendar':
        """Build a calendar from ``Settings.work_calendar``."""
        work_calendar = settings.work_calendar
        return cls(
            start_hour=work_calendar.start_hour,
            end_hour=work_calendar.end_hour,
            working_days=work_calendar.working_days
        )

    @property
    def hours_per_day(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def hours_per_week(self) -> int:
        return self.hours_per_day * len(self.working_days)

    def _wall_clock(self, dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(self.tz).replace(tzinfo=None)

    def is_working_time(self, dt: datetime) -> bool:
        """Return True if ``dt`` falls inside a working interval."""
        local = self._wall_clock(dt)
        return local.weekday() in self.working_days and self.start_hour <= local.hour < self.end_hour

    def working_hours_between(self, start: datetime, end: datetime) -> float:
        """
        Working hours elapsed between ``start`` and ``end``.

        Args:
            start: Beginning of the span
            end: End of the span

        Returns:
            Fractional working hours, 0.0 if ``end`` is not after ``start``
        """
        start = self._wall_clock(start)
        end = self._wall_clock(end)
        if end <= start:
            return 0.0

        total_seconds = 0.0

        # Every 7-day window holds exactly one week of working time, so long
        # spans (e.g. since the epoch) are counted in whole weeks first.
        days = (end.date() - start.date()).days
        if days > 14:
            weeks = (days - 7) // 7
            total_seconds += weeks * self.hours_per_week * 3600
            start += timedelta(weeks=weeks)

        day = start.date()
        while day <= end.date():
            if day.weekday() in self.working_days:
                day_start = datetime.combine(day, time(0))
                work_start = day_start + timedelta(hours=self.start_hour)
                work_end = day_start + timedelta(hours=self.end_hour)
                overlap = (min(end, work_end) - max(start, work_start)).total_seconds()
                if overlap > 0:
                    total_seconds += overlap
            day += timedelta(days=1)

        return total_seconds / 3600
