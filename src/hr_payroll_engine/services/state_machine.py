"""Status state machines with transition validation and declared effects.

Every workflow entity (leave application, comp-off record, payroll record,
employee) has a transition table. Side effects that fire on a transition,
such as the ledger credit on payroll publish, are declared in
TRANSITION_EFFECTS rather than buried in service code, so the accrual
trigger is a rule that can be inspected and tested on its own.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from hr_payroll_engine.errors import ConflictError


def _status_value(status: object) -> str:
    return status.value if isinstance(status, Enum) else str(status)


class InvalidTransitionError(ConflictError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = _status_value(from_status)
        self.to_status = _status_value(to_status)
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, {"from_status": self.from_status, "to_status": self.to_status})


class Effect(str, Enum):
    """Side effects attached to transitions."""

    DEBIT_LEAVE_BALANCE = "DEBIT_LEAVE_BALANCE"
    CREDIT_COMP_OFF = "CREDIT_COMP_OFF"
    ACCRUE_EARNED_LEAVE = "ACCRUE_EARNED_LEAVE"
    STAMP_PROCESSED_AT = "STAMP_PROCESSED_AT"
    STAMP_PAID_AT = "STAMP_PAID_AT"


class StateMachine:
    """Base transition table. Subclasses fill in the class variables."""

    VALID_TRANSITIONS: ClassVar[dict[str, list[str]]] = {}
    TRANSITION_EFFECTS: ClassVar[dict[tuple[str, str], list[Effect]]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def effects_for(cls, from_status: str, to_status: str) -> list[Effect]:
        """Effects that fire when moving from one status to another."""
        return list(cls.TRANSITION_EFFECTS.get((from_status, to_status), []))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)


# ===== Leave applications =====


class LeaveStatus(str, Enum):
    """Leave application status values."""

    PENDING = "PENDING"
    L1_APPROVED = "L1_APPROVED"
    L2_APPROVED = "L2_APPROVED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveApplicationStateMachine(StateMachine):
    """Leave application transitions.

    - PENDING → L1_APPROVED | L2_APPROVED | APPROVED | REJECTED
    - L1_APPROVED → L2_APPROVED | APPROVED | REJECTED
    - L2_APPROVED → APPROVED | REJECTED
    - APPROVED, REJECTED are terminal

    Entering APPROVED debits the balance.
    """

    VALID_TRANSITIONS = {
        LeaveStatus.PENDING: [
            LeaveStatus.L1_APPROVED,
            LeaveStatus.L2_APPROVED,
            LeaveStatus.APPROVED,
            LeaveStatus.REJECTED,
        ],
        LeaveStatus.L1_APPROVED: [
            LeaveStatus.L2_APPROVED,
            LeaveStatus.APPROVED,
            LeaveStatus.REJECTED,
        ],
        LeaveStatus.L2_APPROVED: [LeaveStatus.APPROVED, LeaveStatus.REJECTED],
        LeaveStatus.APPROVED: [],
        LeaveStatus.REJECTED: [],
    }

    TRANSITION_EFFECTS = {
        (LeaveStatus.PENDING, LeaveStatus.APPROVED): [Effect.DEBIT_LEAVE_BALANCE],
        (LeaveStatus.L1_APPROVED, LeaveStatus.APPROVED): [Effect.DEBIT_LEAVE_BALANCE],
        (LeaveStatus.L2_APPROVED, LeaveStatus.APPROVED): [Effect.DEBIT_LEAVE_BALANCE],
    }

    # Statuses that still occupy their date range for overlap checks
    OCCUPYING = frozenset(
        {
            LeaveStatus.PENDING,
            LeaveStatus.L1_APPROVED,
            LeaveStatus.L2_APPROVED,
            LeaveStatus.APPROVED,
        }
    )


# ===== Comp-off =====


class CompOffStatus(str, Enum):
    """Comp-off record status values."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    USED = "USED"


class CompOffStateMachine(StateMachine):
    """Comp-off transitions. Only approval is driven by this engine."""

    VALID_TRANSITIONS = {
        CompOffStatus.PENDING: [CompOffStatus.ACTIVE],
        CompOffStatus.ACTIVE: [],
    }

    TRANSITION_EFFECTS = {
        (CompOffStatus.PENDING, CompOffStatus.ACTIVE): [Effect.CREDIT_COMP_OFF],
    }

    # Claims that block a second claim for the same worked date
    OPEN = frozenset({CompOffStatus.PENDING, CompOffStatus.ACTIVE})


# ===== Payroll records =====


class PayrollStatus(str, Enum):
    """Payroll record status values."""

    DRAFT = "DRAFT"
    PROCESSED = "PROCESSED"
    PAID = "PAID"


class PayrollRecordStateMachine(StateMachine):
    """Payroll record transitions (one-way).

    - DRAFT → PROCESSED (publish; accrues earned leave)
    - PROCESSED → PAID
    """

    VALID_TRANSITIONS = {
        PayrollStatus.DRAFT: [PayrollStatus.PROCESSED],
        PayrollStatus.PROCESSED: [PayrollStatus.PAID],
        PayrollStatus.PAID: [],
    }

    TRANSITION_EFFECTS = {
        (PayrollStatus.DRAFT, PayrollStatus.PROCESSED): [
            Effect.STAMP_PROCESSED_AT,
            Effect.ACCRUE_EARNED_LEAVE,
        ],
        (PayrollStatus.PROCESSED, PayrollStatus.PAID): [Effect.STAMP_PAID_AT],
    }

    # Statuses where financial fields can be recalculated
    INPUTS_MUTABLE = frozenset({PayrollStatus.DRAFT})

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        """Check if LOP days / bonuses / deductions can be changed."""
        return status in cls.INPUTS_MUTABLE


# ===== Employees =====


class EmployeeStatus(str, Enum):
    """Employee status values."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    RESIGNED = "RESIGNED"
    TERMINATED = "TERMINATED"
    ABSCONDING = "ABSCONDING"


class EmployeeStateMachine(StateMachine):
    """Employee lifecycle (one-way)."""

    VALID_TRANSITIONS = {
        EmployeeStatus.DRAFT: [EmployeeStatus.PUBLISHED],
        EmployeeStatus.PUBLISHED: [
            EmployeeStatus.RESIGNED,
            EmployeeStatus.TERMINATED,
            EmployeeStatus.ABSCONDING,
        ],
        EmployeeStatus.RESIGNED: [],
        EmployeeStatus.TERMINATED: [],
        EmployeeStatus.ABSCONDING: [],
    }

    SEPARATED = frozenset(
        {
            EmployeeStatus.RESIGNED,
            EmployeeStatus.TERMINATED,
            EmployeeStatus.ABSCONDING,
        }
    )
