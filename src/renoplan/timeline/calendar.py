"""Working-day calendar arithmetic."""

from collections.abc import Iterable
from datetime import date, timedelta

from renoplan.models import DEFAULT_WORKING_DAYS_PER_WEEK, VALID_WORKING_WEEKS

SATURDAY = 5
SUNDAY = 6

# Weekdays (Monday=0) that are not worked for each working-week length
_REST_DAYS: dict[int, frozenset[int]] = {
    5: frozenset({SATURDAY, SUNDAY}),
    6: frozenset({SUNDAY}),
    7: frozenset(),
}

_ONE_DAY = timedelta(days=1)


class WorkingCalendar:
    """Skips rest days and excluded dates when advancing a schedule.

    Dates in ``excluded_dates`` are never worked, whatever their weekday.
    """

    def __init__(
        self,
        working_days_per_week: int = DEFAULT_WORKING_DAYS_PER_WEEK,
        excluded_dates: Iterable[date] = (),
    ) -> None:
        if working_days_per_week not in VALID_WORKING_WEEKS:
            raise ValueError(
                f"working_days_per_week must be one of {VALID_WORKING_WEEKS}, "
                f"got {working_days_per_week}"
            )
        self.working_days_per_week = working_days_per_week
        self.excluded_dates = frozenset(excluded_dates)
        self._rest_days = _REST_DAYS[working_days_per_week]

    def is_working_day(self, day: date) -> bool:
        """Check whether work can happen on a date."""
        return day.weekday() not in self._rest_days and day not in self.excluded_dates

    def next_working_day(self, day: date) -> date:
        """First working day on or after ``day``."""
        while not self.is_working_day(day):
            day += _ONE_DAY
        return day

    def add_working_days(self, start: date, days: int) -> date:
        """Advance ``start`` by ``days`` working days.

        The start date itself is not counted; the result is always a working
        day unless ``days`` is zero, in which case ``start`` is returned.
        """
        result = start
        added = 0
        while added < days:
            result += _ONE_DAY
            if self.is_working_day(result):
                added += 1
        return result

    def working_days_between(self, start: date, end: date) -> int:
        """Count working days in the half-open interval (start, end]."""
        count = 0
        day = start
        while day < end:
            day += _ONE_DAY
            if self.is_working_day(day):
                count += 1
        return count
