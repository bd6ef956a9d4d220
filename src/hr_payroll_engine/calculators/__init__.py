"""Pure payroll and leave calculators."""

from hr_payroll_engine.calculators.day_count import HolidayCalendar, count_leave_days
from hr_payroll_engine.calculators.payroll_math import recalculate
from hr_payroll_engine.calculators.pro_rata import compute_pro_rata_credit, remaining_months
from hr_payroll_engine.calculators.salary_resolver import (
    monthly_components,
    resolve_totals,
    snapshot_totals,
)
from hr_payroll_engine.calculators.types import LeaveCode, PayrollFigures, SalaryTotals, round2

__all__ = [
    "HolidayCalendar",
    "count_leave_days",
    "recalculate",
    "compute_pro_rata_credit",
    "remaining_months",
    "monthly_components",
    "resolve_totals",
    "snapshot_totals",
    "LeaveCode",
    "PayrollFigures",
    "SalaryTotals",
    "round2",
]
