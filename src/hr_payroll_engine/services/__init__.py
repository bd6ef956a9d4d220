"""Engine services."""

from hr_payroll_engine.services.compoff_service import CompOffService
from hr_payroll_engine.services.employee_service import EmployeeService
from hr_payroll_engine.services.holiday_service import HolidayService
from hr_payroll_engine.services.leave_service import LeaveApplicationService
from hr_payroll_engine.services.ledger_service import LeaveLedgerService, LedgerPosting
from hr_payroll_engine.services.payroll_record_service import PayrollRecordService
from hr_payroll_engine.services.payroll_run_service import (
    EmployeeRunResult,
    PayrollRunGenerator,
    PayrollRunSummary,
)
from hr_payroll_engine.services.salary_service import SalaryService
from hr_payroll_engine.services.sequence_service import SequenceService
from hr_payroll_engine.services.state_machine import (
    CompOffStatus,
    EmployeeStatus,
    InvalidTransitionError,
    LeaveStatus,
    PayrollStatus,
)

__all__ = [
    "CompOffService",
    "EmployeeService",
    "HolidayService",
    "LeaveApplicationService",
    "LeaveLedgerService",
    "LedgerPosting",
    "PayrollRecordService",
    "EmployeeRunResult",
    "PayrollRunGenerator",
    "PayrollRunSummary",
    "SalaryService",
    "SequenceService",
    "CompOffStatus",
    "EmployeeStatus",
    "InvalidTransitionError",
    "LeaveStatus",
    "PayrollStatus",
]
