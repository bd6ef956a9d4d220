"""Leave application and balance endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from hr_payroll_engine.api.dependencies import AppSettings, DbSession
from hr_payroll_engine.api.schemas import (
    BalanceInitRequest,
    BalanceInitResponse,
    ErrorResponse,
    LeaveApplicationCreate,
    LeaveApplicationResponse,
    LeaveBalanceResponse,
    LeaveDecisionRequest,
    LeaveTransactionResponse,
)
from hr_payroll_engine.services.leave_service import LeaveApplicationService
from hr_payroll_engine.services.ledger_service import LeaveLedgerService

router = APIRouter(prefix="/leaves", tags=["leaves"])


# ============================================================================
# Applications
# ============================================================================


@router.post(
    "/applications",
    response_model=LeaveApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def apply_for_leave(
    db: DbSession,
    settings: AppSettings,
    payload: LeaveApplicationCreate,
) -> LeaveApplicationResponse:
    """Submit a leave application."""
    service = LeaveApplicationService(db, settings)
    application = await service.apply(
        employee_id=payload.employee_id,
        leave_type_id=payload.leave_type_id,
        from_date=payload.from_date,
        to_date=payload.to_date,
        reason=payload.reason,
        from_half_day=payload.from_half_day,
        to_half_day=payload.to_half_day,
    )
    return LeaveApplicationResponse.model_validate(application)


@router.get("/applications", response_model=list[LeaveApplicationResponse])
async def list_applications(
    db: DbSession,
    settings: AppSettings,
    employee_id: int | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[LeaveApplicationResponse]:
    """List leave applications with optional filters."""
    service = LeaveApplicationService(db, settings)
    applications = await service.list_applications(employee_id, status_filter)
    return [LeaveApplicationResponse.model_validate(a) for a in applications]


@router.get(
    "/applications/{application_id}",
    response_model=LeaveApplicationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_application(
    db: DbSession,
    settings: AppSettings,
    application_id: Annotated[int, Path()],
) -> LeaveApplicationResponse:
    service = LeaveApplicationService(db, settings)
    return LeaveApplicationResponse.model_validate(await service.get_application(application_id))


@router.post(
    "/applications/{application_id}/decision",
    response_model=LeaveApplicationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def decide_application(
    db: DbSession,
    settings: AppSettings,
    application_id: Annotated[int, Path()],
    payload: LeaveDecisionRequest,
) -> LeaveApplicationResponse:
    """Approve (at any level) or reject a leave application."""
    service = LeaveApplicationService(db, settings)
    application = await service.decide(application_id, payload.status)
    return LeaveApplicationResponse.model_validate(application)


# ============================================================================
# Balances
# ============================================================================


@router.get(
    "/balances/{employee_id}",
    response_model=list[LeaveBalanceResponse],
)
async def get_balances(
    db: DbSession,
    settings: AppSettings,
    employee_id: Annotated[int, Path()],
    year: Annotated[int, Query(ge=2000, le=2100)],
) -> list[LeaveBalanceResponse]:
    """Leave balances of an employee for a year."""
    ledger = LeaveLedgerService(db, settings)
    balances = await ledger.list_balances(employee_id, year)
    return [LeaveBalanceResponse.model_validate(b) for b in balances]


@router.get(
    "/history/{employee_id}",
    response_model=list[LeaveTransactionResponse],
)
async def get_history(
    db: DbSession,
    settings: AppSettings,
    employee_id: Annotated[int, Path()],
    year: int | None = None,
) -> list[LeaveTransactionResponse]:
    """Ledger transactions of an employee."""
    ledger = LeaveLedgerService(db, settings)
    transactions = await ledger.list_transactions(employee_id, year)
    return [LeaveTransactionResponse.model_validate(t) for t in transactions]


@router.post(
    "/balances/initialize",
    response_model=BalanceInitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def initialize_balances(
    db: DbSession,
    settings: AppSettings,
    payload: BalanceInitRequest,
) -> BalanceInitResponse:
    """Create pro-rated opening balances for a leave year."""
    ledger = LeaveLedgerService(db, settings)
    created = await ledger.initialize_balances(payload.year)
    return BalanceInitResponse(year=payload.year, created=created)
