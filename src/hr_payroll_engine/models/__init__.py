"""ORM models."""

from hr_payroll_engine.models.base import Base, TimestampMixin
from hr_payroll_engine.models.employee import (
    Employee,
    SalaryHistory,
    SalaryStructure,
    SequenceCounter,
)
from hr_payroll_engine.models.leave import (
    CompOffRecord,
    EmployeeLeaveBalance,
    Holiday,
    LeaveApplication,
    LeaveTemplate,
    LeaveTransaction,
    LeaveType,
)
from hr_payroll_engine.models.payroll import PayrollRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "SalaryHistory",
    "SalaryStructure",
    "SequenceCounter",
    "CompOffRecord",
    "EmployeeLeaveBalance",
    "Holiday",
    "LeaveApplication",
    "LeaveTemplate",
    "LeaveTransaction",
    "LeaveType",
    "PayrollRecord",
]
