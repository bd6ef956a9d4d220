"""Payroll record recalculation arithmetic."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from hr_payroll_engine.calculators.salary_resolver import base_gross, component
from hr_payroll_engine.calculators.types import (
    STATUTORY_DEDUCTION_COMPONENTS,
    ZERO,
    PayrollFigures,
    round2,
)


def recalculate(
    base: Any,
    total_working_days: Decimal,
    lop_days: Decimal,
    other_allowances: Decimal,
    other_deductions: Decimal,
    lop_day_divisor: int = 30,
) -> PayrollFigures:
    """Recompute a payroll record's financial fields.

    `base` supplies the monthly base components. other_allowances on the
    base is ignored: the argument replaces it as the bonus for the month.
    Every amount is rounded to cents before totals are taken, so
    net == gross - deductions holds exactly on the stored values.
    """
    earnings = base_gross(base)
    daily_rate = earnings / Decimal(lop_day_divisor)
    lop_deduction = round2(daily_rate * lop_days)

    statutory = sum(
        (round2(component(base, name)) for name in STATUTORY_DEDUCTION_COMPONENTS),
        ZERO,
    )
    gross = round2(earnings) + round2(other_allowances)
    total_deductions = statutory + lop_deduction + round2(other_deductions)

    return PayrollFigures(
        daily_rate=round2(daily_rate),
        lop_days=lop_days,
        lop_deduction=lop_deduction,
        other_allowances=round2(other_allowances),
        other_deductions=round2(other_deductions),
        gross_salary=gross,
        total_deductions=total_deductions,
        net_salary=gross - total_deductions,
        present_days=total_working_days - lop_days,
    )
