"""Tests for the leave application workflow."""

import dataclasses
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from hr_payroll_engine.config import get_settings
from hr_payroll_engine.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from hr_payroll_engine.models import LeaveApplication
from hr_payroll_engine.services.leave_service import LeaveApplicationService
from hr_payroll_engine.services.ledger_service import LeaveLedgerService
from hr_payroll_engine.services.state_machine import InvalidTransitionError


async def _status_of(session, application_id: int) -> str:
    return await session.scalar(
        select(LeaveApplication.status).where(LeaveApplication.id == application_id)
    )


@pytest.fixture
async def employee(session, leave_policy, make_employee):
    """Employee with 12 CL days for 2026."""
    employee = await make_employee()
    await LeaveLedgerService(session).credit(
        employee.id, leave_policy["CL"].id, 2026, Decimal("12"), "Opening Balance 2026"
    )
    return employee


class TestApply:
    """Test submission validation."""

    async def test_creates_pending_application(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)

        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 12), "Family trip"
        )

        assert application.id is not None
        assert application.status == "PENDING"
        assert application.total_days == Decimal("3")

    async def test_inverted_range_rejected(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)

        with pytest.raises(ValidationError):
            await service.apply(
                employee.id, leave_policy["CL"].id, date(2026, 3, 12), date(2026, 3, 10)
            )

    async def test_weekend_only_range_rejected(self, session, leave_policy, employee):
        """Saturday to Sunday has no working days."""
        service = LeaveApplicationService(session)

        with pytest.raises(ValidationError) as exc_info:
            await service.apply(
                employee.id, leave_policy["CL"].id, date(2026, 3, 7), date(2026, 3, 8)
            )

        assert "holidays or weekends" in exc_info.value.message

    async def test_holidays_excluded(self, session, leave_policy, employee, holidays):
        service = LeaveApplicationService(session)

        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 9), date(2026, 3, 13)
        )

        assert application.total_days == Decimal("4")

    async def test_half_days(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)

        application = await service.apply(
            employee.id,
            leave_policy["CL"].id,
            date(2026, 3, 10),
            date(2026, 3, 12),
            from_half_day=True,
        )

        assert application.total_days == Decimal("2.5")

    async def test_overlap_rejected(self, session, leave_policy, employee):
        """A pending 10-12 March request blocks 12-14 March."""
        service = LeaveApplicationService(session)
        first = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 12)
        )

        with pytest.raises(ConflictError) as exc_info:
            await service.apply(
                employee.id, leave_policy["CL"].id, date(2026, 3, 12), date(2026, 3, 14)
            )

        assert exc_info.value.details["conflicting_application_id"] == first.id
        assert exc_info.value.details["conflicting_from_date"] == "2026-03-10"
        assert exc_info.value.details["conflicting_to_date"] == "2026-03-12"

    async def test_overlap_with_approved_leave_rejected(self, session, leave_policy, employee):
        """An approved 10-12 March leave blocks a request starting on the 12th."""
        service = LeaveApplicationService(session)
        first = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 12)
        )
        await service.approve(first.id)
        assert await _status_of(session, first.id) == "APPROVED"

        with pytest.raises(ConflictError) as exc_info:
            await service.apply(
                employee.id, leave_policy["CL"].id, date(2026, 3, 12), date(2026, 3, 14)
            )

        assert exc_info.value.details["conflicting_application_id"] == first.id
        assert exc_info.value.details["conflicting_from_date"] == "2026-03-10"

    async def test_rejected_application_does_not_block(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)
        first = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 12)
        )
        await service.reject(first.id)

        second = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 12), date(2026, 3, 13)
        )

        assert second.status == "PENDING"

    async def test_insufficient_balance(self, session, leave_policy, make_employee):
        employee = await make_employee()
        await LeaveLedgerService(session).credit(
            employee.id, leave_policy["SL"].id, 2026, Decimal("2"), "Opening Balance 2026"
        )
        service = LeaveApplicationService(session)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await service.apply(
                employee.id, leave_policy["SL"].id, date(2026, 3, 9), date(2026, 3, 13)
            )

        assert exc_info.value.required == Decimal("5")
        assert exc_info.value.available == Decimal("2")

    async def test_paid_leave_without_balance_row(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await service.apply(
                employee.id, leave_policy["EL"].id, date(2026, 3, 10), date(2026, 3, 10)
            )

        assert exc_info.value.available == Decimal("0")

    async def test_unpaid_leave_skips_balance_check(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)

        application = await service.apply(
            employee.id, leave_policy["LOP"].id, date(2026, 3, 16), date(2026, 3, 20)
        )

        assert application.total_days == Decimal("5")

    async def test_unknown_employee(self, session, leave_policy):
        service = LeaveApplicationService(session)

        with pytest.raises(NotFoundError):
            await service.apply(999, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 10))


class TestDecide:
    """Test approval transitions and the balance debit."""

    async def test_approval_debits_balance(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)
        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 12)
        )

        await service.approve(application.id)

        assert await _status_of(session, application.id) == "APPROVED"
        balance = await LeaveLedgerService(session).get_balance(
            employee.id, leave_policy["CL"].id, 2026
        )
        assert balance.used == Decimal("3")
        assert balance.closing == Decimal("9")
        assert balance.is_consistent()

        transactions = await LeaveLedgerService(session).list_transactions(employee.id)
        assert transactions[-1].transaction_type == "DEBIT"
        assert transactions[-1].reason == f"Leave Approved (#{application.id})"

    async def test_multi_level_approval_debits_once(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)
        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 11)
        )

        await service.decide(application.id, "L1_APPROVED")
        await service.decide(application.id, "L2_APPROVED")
        await service.decide(application.id, "APPROVED")

        balance = await LeaveLedgerService(session).get_balance(
            employee.id, leave_policy["CL"].id, 2026
        )
        assert balance.used == Decimal("2")

    async def test_second_approval_rejected(self, session, leave_policy, employee):
        """Approving twice raises instead of debiting twice."""
        service = LeaveApplicationService(session)
        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 10)
        )
        application_id = application.id
        await service.approve(application_id)

        with pytest.raises(InvalidTransitionError):
            await service.approve(application_id)

        balance = await LeaveLedgerService(session).get_balance(
            employee.id, leave_policy["CL"].id, 2026, lock=True
        )
        assert balance.used == Decimal("1")

    async def test_rejection_leaves_balance_untouched(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)
        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 12)
        )

        await service.reject(application.id)

        balance = await LeaveLedgerService(session).get_balance(
            employee.id, leave_policy["CL"].id, 2026
        )
        assert balance.used == Decimal("0")
        assert balance.closing == Decimal("12")

    async def test_missing_balance_tolerated(self, session, leave_policy, employee, caplog):
        """Unpaid leave with no balance row is approved with a warning."""
        service = LeaveApplicationService(session)
        application = await service.apply(
            employee.id, leave_policy["LOP"].id, date(2026, 3, 16), date(2026, 3, 16)
        )

        with caplog.at_level("WARNING"):
            await service.approve(application.id)

        assert await _status_of(session, application.id) == "APPROVED"
        assert "without a debit" in caplog.text

    async def test_missing_balance_strict(self, session, leave_policy, employee):
        """With strict debits the approval fails and the status is kept."""
        settings = dataclasses.replace(get_settings(), strict_leave_debit=True)
        service = LeaveApplicationService(session, settings)
        application = await service.apply(
            employee.id, leave_policy["LOP"].id, date(2026, 3, 16), date(2026, 3, 16)
        )
        application_id = application.id

        with pytest.raises(InsufficientBalanceError):
            await service.approve(application_id)

        assert await _status_of(session, application_id) == "PENDING"

    async def test_unknown_status(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)
        application = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 10)
        )

        with pytest.raises(ValidationError):
            await service.decide(application.id, "MAYBE")

    async def test_list_applications_filters(self, session, leave_policy, employee):
        service = LeaveApplicationService(session)
        first = await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 3, 10), date(2026, 3, 10)
        )
        await service.apply(
            employee.id, leave_policy["CL"].id, date(2026, 4, 6), date(2026, 4, 6)
        )
        await service.approve(first.id)

        approved = await service.list_applications(employee.id, "APPROVED")
        everything = await service.list_applications(employee.id)

        assert [a.id for a in approved] == [first.id]
        assert len(everything) == 2
