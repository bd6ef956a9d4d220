"""Tests for salary structure resolution."""

from dataclasses import dataclass
from decimal import Decimal

from hr_payroll_engine.calculators.salary_resolver import (
    base_gross,
    monthly_components,
    resolve_totals,
    snapshot_totals,
)

from tests.conftest import ANNUAL_SALARY


@dataclass
class PartialStructure:
    basic_salary: Decimal | None = None
    hra: Decimal | None = None
    provident_fund: Decimal | None = None


class TestResolveTotals:
    """Test gross / deductions / net derivation."""

    def test_totals_from_mapping(self):
        totals = resolve_totals(ANNUAL_SALARY)

        assert totals.gross == Decimal("619200")
        assert totals.total_deductions == Decimal("69600")
        assert totals.net == Decimal("549600")

    def test_missing_and_null_components_count_as_zero(self):
        """A structure with nulls and absent attributes still resolves."""
        structure = PartialStructure(basic_salary=Decimal("1000"), hra=None)

        totals = resolve_totals(structure)

        assert totals.gross == Decimal("1000")
        assert totals.total_deductions == Decimal("0")
        assert totals.net == Decimal("1000")

    def test_other_allowances_in_gross_but_not_base(self):
        source = {"basic_salary": Decimal("100"), "other_allowances": Decimal("50")}

        assert resolve_totals(source).gross == Decimal("150")
        assert base_gross(source) == Decimal("100")


class TestMonthlyConversion:
    """Test annual to monthly conversion."""

    def test_monthly_components(self):
        monthly = monthly_components(ANNUAL_SALARY)

        assert monthly["basic_salary"] == Decimal("30000.00")
        assert monthly["ta"] == Decimal("1600.00")
        assert monthly["income_tax"] == Decimal("2000.00")
        assert resolve_totals(monthly).net == Decimal("45800.00")

    def test_monthly_rounds_half_up(self):
        monthly = monthly_components({"basic_salary": Decimal("100")})

        assert monthly["basic_salary"] == Decimal("8.33")
        assert monthly["hra"] == Decimal("0.00")

    def test_snapshot_totals(self):
        snapshot = snapshot_totals(ANNUAL_SALARY)

        assert snapshot == {
            "ctc_annual": Decimal("619200.00"),
            "net_salary_annual": Decimal("549600.00"),
            "net_salary_monthly": Decimal("45800.00"),
        }
