"""Type definitions shared by the pure calculators."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENTS = Decimal("0.01")
ZERO = Decimal("0")

# Component names as stored on SalaryStructure / SalaryHistory / PayrollRecord.
BASE_EARNING_COMPONENTS = (
    "basic_salary",
    "hra",
    "da",
    "ta",
    "special_allowance",
)
EARNING_COMPONENTS = BASE_EARNING_COMPONENTS + ("other_allowances",)
STATUTORY_DEDUCTION_COMPONENTS = (
    "provident_fund",
    "esi",
    "professional_tax",
    "income_tax",
)
DEDUCTION_COMPONENTS = STATUTORY_DEDUCTION_COMPONENTS + ("other_deductions",)
SALARY_COMPONENTS = EARNING_COMPONENTS + DEDUCTION_COMPONENTS


def round2(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: object) -> Decimal:
    """Coerce a stored or user-supplied number to Decimal; None is zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)  # type: ignore[arg-type]


class LeaveCode(str, Enum):
    """Leave type codes with special ledger semantics."""

    CASUAL = "CL"
    EARNED = "EL"
    SICK = "SL"
    LOSS_OF_PAY = "LOP"
    COMP_OFF = "CO"


@dataclass(frozen=True)
class SalaryTotals:
    """Gross / deductions / net derived from a salary structure."""

    gross: Decimal
    total_deductions: Decimal

    @property
    def net(self) -> Decimal:
        return self.gross - self.total_deductions


@dataclass(frozen=True)
class PayrollFigures:
    """Recalculated financial fields of a payroll record."""

    daily_rate: Decimal
    lop_days: Decimal
    lop_deduction: Decimal
    other_allowances: Decimal
    other_deductions: Decimal
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    present_days: Decimal
