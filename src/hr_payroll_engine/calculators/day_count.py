"""Working-day counting for leave applications."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

HALF_DAY = Decimal("0.5")

# Monday=0 ... Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


@dataclass(frozen=True)
class HolidayCalendar:
    """Set of holiday dates, queried by the day counter."""

    dates: frozenset[date] = field(default_factory=frozenset)

    @classmethod
    def of(cls, dates: Iterable[date]) -> HolidayCalendar:
        return cls(frozenset(dates))

    def is_holiday(self, day: date) -> bool:
        return day in self.dates


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day in [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_working_day(day: date, calendar: HolidayCalendar) -> bool:
    return day.weekday() not in WEEKEND_DAYS and not calendar.is_holiday(day)


def count_leave_days(
    from_date: date,
    to_date: date,
    calendar: HolidayCalendar | None = None,
    from_half_day: bool = False,
    to_half_day: bool = False,
) -> Decimal:
    """Count chargeable leave days in [from_date, to_date].

    Weekends and holidays are excluded. A half-day flag removes 0.5 only
    when its boundary day is itself a working day. Returns zero for an
    inverted range; callers validate ordering first.
    """
    calendar = calendar or HolidayCalendar()
    total = Decimal(
        sum(1 for day in iter_days(from_date, to_date) if is_working_day(day, calendar))
    )

    if from_half_day and is_working_day(from_date, calendar):
        total -= HALF_DAY
    if to_half_day and is_working_day(to_date, calendar):
        total -= HALF_DAY

    return max(total, Decimal("0"))
