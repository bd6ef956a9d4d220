"""Salary structure resolution.

Pure functions over anything that exposes the salary component names,
either as attributes (ORM rows, dataclasses) or as mapping keys. Missing
or null components count as zero since legacy snapshots may hold nulls.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from hr_payroll_engine.calculators.types import (
    BASE_EARNING_COMPONENTS,
    DEDUCTION_COMPONENTS,
    EARNING_COMPONENTS,
    SALARY_COMPONENTS,
    ZERO,
    SalaryTotals,
    round2,
    to_decimal,
)

MONTHS_PER_YEAR = Decimal("12")


def component(source: Any, name: str) -> Decimal:
    """Read a single component, treating missing/None as zero."""
    if isinstance(source, Mapping):
        value = source.get(name)
    else:
        value = getattr(source, name, None)
    return to_decimal(value)


def _sum(source: Any, names: Iterable[str]) -> Decimal:
    return sum((component(source, n) for n in names), ZERO)


def resolve_totals(source: Any) -> SalaryTotals:
    """Return gross, total deductions and net for a structure.

    Works on annual or monthly values alike; the caller picks the convention.
    """
    return SalaryTotals(
        gross=_sum(source, EARNING_COMPONENTS),
        total_deductions=_sum(source, DEDUCTION_COMPONENTS),
    )


def base_gross(source: Any) -> Decimal:
    """Earnings excluding other_allowances (the bonus slot on payroll records)."""
    return _sum(source, BASE_EARNING_COMPONENTS)


def monthly_components(source: Any) -> dict[str, Decimal]:
    """Convert annual components to monthly, rounded to cents."""
    return {
        name: round2(component(source, name) / MONTHS_PER_YEAR)
        for name in SALARY_COMPONENTS
    }


def snapshot_totals(source: Any) -> dict[str, Decimal]:
    """Derived snapshot fields for a structure holding annual components."""
    totals = resolve_totals(source)
    return {
        "ctc_annual": round2(totals.gross),
        "net_salary_annual": round2(totals.net),
        "net_salary_monthly": round2(totals.net / MONTHS_PER_YEAR),
    }
