"""Tests for holiday calendar lookups."""

from datetime import date

from hr_payroll_engine.services.holiday_service import HolidayService


class TestHolidayService:
    """Test calendar loading."""

    async def test_calendar_for_range(self, session, holidays):
        calendar = await HolidayService(session).calendar_for(date(2026, 3, 1), date(2026, 3, 31))

        assert calendar.is_holiday(date(2026, 3, 11))
        assert not calendar.is_holiday(date(2026, 1, 26))

    async def test_upcoming(self, session, holidays):
        upcoming = await HolidayService(session).upcoming(as_of=date(2026, 2, 1))

        assert [h.name for h in upcoming] == ["Company Holiday"]
