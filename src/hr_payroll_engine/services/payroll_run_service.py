"""Payroll run generator - creates DRAFT payroll records for a month.

Generation is idempotent per (employee, year, month): an employee who
already has a record for the period is counted as existing and left
untouched. Each employee is processed in its own savepoint so one failure
does not abort the run.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.calculators.salary_resolver import monthly_components, resolve_totals
from hr_payroll_engine.calculators.types import LeaveCode, round2
from hr_payroll_engine.config import Settings, get_settings
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import ValidationError
from hr_payroll_engine.models import Employee, LeaveType, PayrollRecord, SalaryStructure
from hr_payroll_engine.services.state_machine import EmployeeStatus, PayrollStatus

logger = logging.getLogger(__name__)

CREATED = "created"
EXISTING = "existing"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class EmployeeRunResult:
    """Outcome of the generator for one employee."""

    employee_id: int
    employee_code: str
    outcome: str
    record_id: int | None = None
    message: str | None = None


@dataclass
class PayrollRunSummary:
    """Counts and per-employee detail for one generate() call."""

    month: int
    year: int
    results: list[EmployeeRunResult] = field(default_factory=list)

    def _having(self, outcome: str) -> list[EmployeeRunResult]:
        return [r for r in self.results if r.outcome == outcome]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def created(self) -> int:
        return len(self._having(CREATED))

    @property
    def existing(self) -> int:
        return len(self._having(EXISTING))

    @property
    def skipped(self) -> int:
        return len(self._having(SKIPPED))

    @property
    def failed(self) -> int:
        return len(self._having(FAILED))

    @property
    def skipped_details(self) -> list[EmployeeRunResult]:
        return self._having(SKIPPED)

    @property
    def failed_details(self) -> list[EmployeeRunResult]:
        return self._having(FAILED)


class PayrollRunGenerator:
    """Generates monthly payroll records for all eligible employees."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self._el_quota_cache: dict[int, Decimal | None] = {}

    async def generate(self, month: int, year: int) -> PayrollRunSummary:
        """Create DRAFT records for every published employee.

        An employee is eligible when PUBLISHED and joined on or before the
        last day of the period.

        Args:
            month: 1-12
            year: Calendar year

        Returns:
            PayrollRunSummary with created/existing/skipped/failed outcomes

        Raises:
            ValidationError: month outside 1..12
        """
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12", {"month": month})

        period_end = date(year, month, calendar.monthrange(year, month)[1])
        result = await self.session.execute(
            select(Employee)
            .where(
                Employee.status == EmployeeStatus.PUBLISHED.value,
                Employee.date_of_joining <= period_end,
            )
            .order_by(Employee.id)
        )
        # Plain values so a rolled-back savepoint never touches expired rows
        eligible = [
            (e.id, e.employee_code, e.leave_template_id) for e in result.scalars().all()
        ]

        summary = PayrollRunSummary(month=month, year=year)
        for employee_id, employee_code, template_id in eligible:
            try:
                async with atomic(self.session):
                    outcome = await self._generate_for(
                        employee_id, employee_code, template_id, month, year
                    )
            except IntegrityError as exc:
                outcome = await self._resolve_integrity_error(
                    employee_id, employee_code, month, year, exc
                )
            except Exception as exc:
                logger.exception(
                    "Payroll generation failed for employee %s (%s/%s)",
                    employee_code, month, year,
                )
                outcome = EmployeeRunResult(
                    employee_id, employee_code, FAILED, message=str(exc)
                )
            summary.results.append(outcome)

        logger.info(
            "Payroll run %s/%s: total=%d created=%d existing=%d skipped=%d failed=%d",
            month, year, summary.total, summary.created,
            summary.existing, summary.skipped, summary.failed,
        )
        return summary

    async def list_records(
        self,
        month: int | None = None,
        year: int | None = None,
        employee_id: int | None = None,
    ) -> list[PayrollRecord]:
        """Payroll records, most recent period first."""
        stmt = select(PayrollRecord)
        if month is not None:
            stmt = stmt.where(PayrollRecord.month == month)
        if year is not None:
            stmt = stmt.where(PayrollRecord.year == year)
        if employee_id is not None:
            stmt = stmt.where(PayrollRecord.employee_id == employee_id)
        result = await self.session.execute(
            stmt.order_by(
                PayrollRecord.year.desc(),
                PayrollRecord.month.desc(),
                PayrollRecord.employee_id,
            )
        )
        return list(result.scalars().all())

    async def _generate_for(
        self,
        employee_id: int,
        employee_code: str,
        template_id: int | None,
        month: int,
        year: int,
    ) -> EmployeeRunResult:
        existing_id = await self._existing_record_id(employee_id, month, year)
        if existing_id is not None:
            return EmployeeRunResult(employee_id, employee_code, EXISTING, existing_id)

        structure_result = await self.session.execute(
            select(SalaryStructure).where(SalaryStructure.employee_id == employee_id)
        )
        structure = structure_result.scalar_one_or_none()
        if structure is None:
            return EmployeeRunResult(
                employee_id, employee_code, SKIPPED, message="No salary structure"
            )

        monthly = monthly_components(structure)
        totals = resolve_totals(monthly)
        working_days = Decimal(self.settings.payroll_working_days)

        el_quota = await self._earned_leave_quota(template_id)
        el_credit = round2(el_quota / 12) if el_quota is not None else Decimal("0")

        record = PayrollRecord(
            employee_id=employee_id,
            year=year,
            month=month,
            payroll_date=date.today(),
            total_working_days=working_days,
            present_days=working_days,
            lop_days=Decimal("0"),
            lop_deduction=Decimal("0"),
            gross_salary=totals.gross,
            total_deductions=totals.total_deductions,
            net_salary=totals.net,
            el_credit=el_credit,
            status=PayrollStatus.DRAFT.value,
            **monthly,
        )
        self.session.add(record)
        await self.session.flush()

        logger.info(
            "Created payroll record %s for %s (%s/%s): gross=%s net=%s",
            record.id, employee_code, month, year, record.gross_salary, record.net_salary,
        )
        return EmployeeRunResult(employee_id, employee_code, CREATED, record.id)

    async def _existing_record_id(self, employee_id: int, month: int, year: int) -> int | None:
        result = await self.session.execute(
            select(PayrollRecord.id).where(
                PayrollRecord.employee_id == employee_id,
                PayrollRecord.year == year,
                PayrollRecord.month == month,
            )
        )
        return result.scalar_one_or_none()

    async def _resolve_integrity_error(
        self,
        employee_id: int,
        employee_code: str,
        month: int,
        year: int,
        exc: IntegrityError,
    ) -> EmployeeRunResult:
        """EXISTING if a concurrent run inserted the period first, else FAILED."""
        record_id = await self._existing_record_id(employee_id, month, year)
        if record_id is not None:
            logger.info(
                "Payroll record for %s (%s/%s) was created concurrently",
                employee_code, month, year,
            )
            return EmployeeRunResult(employee_id, employee_code, EXISTING, record_id)

        logger.error(
            "Payroll generation failed for employee %s (%s/%s): %s",
            employee_code, month, year, exc.orig,
        )
        return EmployeeRunResult(employee_id, employee_code, FAILED, message=str(exc.orig))

    async def _earned_leave_quota(self, template_id: int | None) -> Decimal | None:
        """Annual EL quota of a template, None when it has no EL type."""
        if template_id is None:
            return None
        if template_id not in self._el_quota_cache:
            result = await self.session.execute(
                select(LeaveType.annual_quota).where(
                    LeaveType.leave_template_id == template_id,
                    LeaveType.code == LeaveCode.EARNED.value,
                )
            )
            self._el_quota_cache[template_id] = result.scalars().first()
        return self._el_quota_cache[template_id]
