"""Holiday calendar lookups."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.calculators.day_count import HolidayCalendar
from hr_payroll_engine.models import Holiday


class HolidayService:
    """Loads holiday calendars for day counting."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def calendar_for(self, start: date, end: date) -> HolidayCalendar:
        """Holiday calendar covering [start, end]."""
        result = await self.session.execute(
            select(Holiday.holiday_date).where(
                Holiday.holiday_date >= start,
                Holiday.holiday_date <= end,
            )
        )
        return HolidayCalendar.of(result.scalars().all())

    async def upcoming(self, as_of: date | None = None, limit: int = 3) -> list[Holiday]:
        """Next holidays on or after `as_of`."""
        as_of = as_of or date.today()
        result = await self.session.execute(
            select(Holiday)
            .where(Holiday.holiday_date >= as_of)
            .order_by(Holiday.holiday_date)
            .limit(limit)
        )
        return list(result.scalars().all())
