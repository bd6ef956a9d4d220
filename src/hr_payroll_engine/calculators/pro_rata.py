"""Pro-rata leave accrual for employees joining mid-year."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from hr_payroll_engine.calculators.types import LeaveCode, round2, to_decimal

MONTHS_PER_YEAR = 12


def remaining_months(
    date_of_joining: date,
    year: int,
    cutoff_day: int = 15,
) -> int:
    """Months of `year` the employee is entitled to accrue for.

    Joining after `cutoff_day` of a month forfeits that month. Employees who
    joined in an earlier year accrue the full year.
    """
    if date_of_joining.year < year:
        return MONTHS_PER_YEAR
    if date_of_joining.year > year:
        return 0

    start_month = date_of_joining.month - 1  # January = 0
    if date_of_joining.day > cutoff_day:
        start_month += 1
    return max(0, MONTHS_PER_YEAR - start_month)


def compute_pro_rata_credit(leave_type: Any, months: int) -> Decimal:
    """Opening credit for a leave type given the months remaining.

    EL accrues only through payroll, so it starts at zero. LOP and CO are
    granted their full quota (normally zero).
    """
    code = getattr(leave_type, "code", None)
    quota = to_decimal(getattr(leave_type, "annual_quota", None))

    if code == LeaveCode.EARNED.value:
        return Decimal("0.00")
    if code in (LeaveCode.LOSS_OF_PAY.value, LeaveCode.COMP_OFF.value):
        return round2(quota)

    return round2(quota / MONTHS_PER_YEAR * months)
