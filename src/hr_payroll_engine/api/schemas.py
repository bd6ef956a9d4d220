"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Errors
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveApplicationCreate(BaseModel):
    """Schema for submitting a leave application."""

    employee_id: int
    leave_type_id: int
    from_date: date
    to_date: date
    from_half_day: bool = False
    to_half_day: bool = False
    reason: str | None = None


class LeaveDecisionRequest(BaseModel):
    """Schema for an approver decision."""

    status: str = Field(..., description="L1_APPROVED, L2_APPROVED, APPROVED or REJECTED")


class LeaveApplicationResponse(BaseModel):
    """Schema for leave application response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    leave_type_id: int
    from_date: date
    to_date: date
    from_half_day: bool
    to_half_day: bool
    total_days: Decimal
    reason: str | None = None
    status: str
    created_at: datetime


class LeaveBalanceResponse(BaseModel):
    """Schema for one leave balance row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    leave_type_id: int
    year: int
    opening: Decimal
    credited: Decimal
    used: Decimal
    closing: Decimal


class LeaveTransactionResponse(BaseModel):
    """Schema for a ledger history row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    leave_type_id: int
    leave_type_code: str
    year: int
    transaction_type: str
    days: Decimal
    reason: str
    created_at: datetime


class BalanceInitRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)


class BalanceInitResponse(BaseModel):
    year: int
    created: int


# ============================================================================
# Comp-off schemas
# ============================================================================


class CompOffCreate(BaseModel):
    """Schema for claiming a comp-off."""

    employee_id: int
    worked_date: date
    reason: str | None = None


class CompOffResponse(BaseModel):
    """Schema for comp-off response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    worked_date: date
    reason: str | None = None
    expiry_date: date
    credited_days: Decimal
    status: str


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollGenerateRequest(BaseModel):
    """Schema for generating a month's payroll."""

    month: int
    year: int


class PayrollRunResultItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    employee_code: str
    outcome: str
    record_id: int | None = None
    message: str | None = None


class PayrollGenerateResponse(BaseModel):
    """Schema for a payroll run summary."""

    month: int
    year: int
    total: int
    created: int
    existing: int
    skipped: int
    failed: int
    results: list[PayrollRunResultItem]


class PayrollRecordUpdate(BaseModel):
    """Schema for updating a payroll record."""

    lop_days: Decimal | None = None
    other_allowances: Decimal | None = None
    other_deductions: Decimal | None = None
    status: str | None = None


class PayrollRecordResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    year: int
    month: int
    payroll_date: date
    total_working_days: Decimal
    present_days: Decimal
    lop_days: Decimal
    basic_salary: Decimal
    hra: Decimal
    da: Decimal
    ta: Decimal
    special_allowance: Decimal
    other_allowances: Decimal
    gross_salary: Decimal
    provident_fund: Decimal
    esi: Decimal
    professional_tax: Decimal
    income_tax: Decimal
    lop_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    el_credit: Decimal
    status: str
    processed_at: datetime | None = None
    paid_at: datetime | None = None


# ============================================================================
# Employee / salary schemas
# ============================================================================


class EmployeeResponse(BaseModel):
    """Schema for employee response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_code: str
    first_name: str
    last_name: str
    date_of_joining: date
    date_of_leaving: date | None = None
    status: str
    leave_template_id: int | None = None


class SeparationRequest(BaseModel):
    status: str = Field(..., description="RESIGNED, TERMINATED or ABSCONDING")
    date_of_leaving: date


class NextCodeResponse(BaseModel):
    employee_code: str


class SalaryComponents(BaseModel):
    """Annual salary components."""

    basic_salary: Decimal = Decimal("0")
    hra: Decimal = Decimal("0")
    da: Decimal = Decimal("0")
    ta: Decimal = Decimal("0")
    special_allowance: Decimal = Decimal("0")
    other_allowances: Decimal = Decimal("0")
    provident_fund: Decimal = Decimal("0")
    esi: Decimal = Decimal("0")
    professional_tax: Decimal = Decimal("0")
    income_tax: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")


class IncrementRequest(BaseModel):
    """Schema for a salary increment."""

    components: SalaryComponents
    effective_from: date
    remarks: str | None = None
    increment_percentage: Decimal | None = None


class SalaryStructureResponse(BaseModel):
    """Schema for the live salary structure."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    basic_salary: Decimal | None = None
    hra: Decimal | None = None
    da: Decimal | None = None
    ta: Decimal | None = None
    special_allowance: Decimal | None = None
    other_allowances: Decimal | None = None
    provident_fund: Decimal | None = None
    esi: Decimal | None = None
    professional_tax: Decimal | None = None
    income_tax: Decimal | None = None
    other_deductions: Decimal | None = None
    effective_from: date
    effective_to: date | None = None
    ctc_annual: Decimal | None = None
    net_salary_annual: Decimal | None = None
    net_salary_monthly: Decimal | None = None


class SalaryHistoryResponse(BaseModel):
    """Schema for an archived salary structure."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    effective_from: date
    effective_to: date
    reason: str | None = None
    ctc_annual: Decimal | None = None
    net_salary_annual: Decimal | None = None
    net_salary_monthly: Decimal | None = None
