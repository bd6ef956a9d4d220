"""Salary increments.

An increment archives the live structure to SalaryHistory and replaces its
components in a single atomic unit.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll_engine.calculators.salary_resolver import snapshot_totals
from hr_payroll_engine.calculators.types import SALARY_COMPONENTS, round2, to_decimal
from hr_payroll_engine.database import atomic
from hr_payroll_engine.errors import ConflictError, NotFoundError, ValidationError
from hr_payroll_engine.models import Employee, SalaryHistory, SalaryStructure
from hr_payroll_engine.services.state_machine import EmployeeStateMachine

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ("ctc_annual", "net_salary_annual", "net_salary_monthly")


def increment_reason(remarks: str | None, increment_percentage: Decimal | None) -> str:
    """History reason text, e.g. 'Annual Appraisal - 10% Hike'."""
    label = "Flat Revision" if increment_percentage is None else f"{increment_percentage}% Hike"
    return f"{remarks or 'Revision'} - {label}"


class SalaryService:
    """Applies increments and reads salary history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_structure(self, employee_id: int) -> SalaryStructure:
        result = await self.session.execute(
            select(SalaryStructure).where(SalaryStructure.employee_id == employee_id)
        )
        structure = result.scalar_one_or_none()
        if structure is None:
            raise NotFoundError("SalaryStructure", employee_id)
        return structure

    async def apply_increment(
        self,
        employee_id: int,
        new_components: Mapping[str, Any],
        effective_from: date,
        remarks: str | None = None,
        increment_percentage: Decimal | None = None,
    ) -> SalaryStructure:
        """Archive the current structure and apply new annual components.

        Components absent from new_components are set to zero; the derived
        snapshot (CTC, net annual, net monthly) is recomputed.

        Args:
            employee_id: Employee receiving the increment
            new_components: Annual component values keyed by component name
            effective_from: Start of the new structure; closes the archived one
            remarks: Reason prefix for the history row
            increment_percentage: Percentage hike, None for a flat revision

        Raises:
            NotFoundError: Employee or salary structure missing
            ConflictError: Employee has separated
            ValidationError: Unknown component, negative amount, or
                effective_from not after the current effective_from
        """
        unknown = set(new_components) - set(SALARY_COMPONENTS)
        if unknown:
            raise ValidationError(
                "Unknown salary components", {"components": sorted(unknown)}
            )
        amounts = {name: to_decimal(new_components.get(name)) for name in SALARY_COMPONENTS}
        negative = sorted(name for name, value in amounts.items() if value < 0)
        if negative:
            raise ValidationError(
                "Salary components must be non-negative", {"components": negative}
            )

        async with atomic(self.session):
            employee = await self.session.get(Employee, employee_id)
            if employee is None:
                raise NotFoundError("Employee", employee_id)
            if employee.status in EmployeeStateMachine.SEPARATED:
                raise ConflictError(
                    f"Employee {employee.employee_code} is {employee.status}",
                    {"employee_id": employee_id, "status": employee.status},
                )

            result = await self.session.execute(
                select(SalaryStructure)
                .where(SalaryStructure.employee_id == employee_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            structure = result.scalar_one_or_none()
            if structure is None:
                raise NotFoundError("SalaryStructure", employee_id)
            if effective_from <= structure.effective_from:
                raise ValidationError(
                    "effective_from must be after the current structure's effective_from",
                    {
                        "effective_from": effective_from.isoformat(),
                        "current_effective_from": structure.effective_from.isoformat(),
                    },
                )

            history = self._archive(structure, effective_from, remarks, increment_percentage)
            self.session.add(history)

            for name, value in amounts.items():
                setattr(structure, name, round2(value))
            for name, value in snapshot_totals(structure).items():
                setattr(structure, name, value)
            structure.effective_from = effective_from
            structure.effective_to = None
            await self.session.flush()

        logger.info(
            "Applied increment for employee %s effective %s: ctc=%s (%s)",
            employee_id, effective_from, structure.ctc_annual, history.reason,
        )
        return structure

    async def salary_history(self, employee_id: int) -> list[SalaryHistory]:
        """Archived structures, most recent first."""
        result = await self.session.execute(
            select(SalaryHistory)
            .where(SalaryHistory.employee_id == employee_id)
            .order_by(SalaryHistory.effective_from.desc(), SalaryHistory.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    def _archive(
        structure: SalaryStructure,
        effective_to: date,
        remarks: str | None,
        increment_percentage: Decimal | None,
    ) -> SalaryHistory:
        values = {name: getattr(structure, name) for name in SALARY_COMPONENTS}

        # Older rows may predate the derived snapshot
        recomputed = snapshot_totals(structure)
        for name in SNAPSHOT_FIELDS:
            stored = getattr(structure, name)
            values[name] = stored if stored is not None else recomputed[name]

        return SalaryHistory(
            employee_id=structure.employee_id,
            effective_from=structure.effective_from,
            effective_to=effective_to,
            reason=increment_reason(remarks, increment_percentage),
            **values,
        )
