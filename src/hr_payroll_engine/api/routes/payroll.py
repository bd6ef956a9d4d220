"""Payroll generation and record endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from hr_payroll_engine.api.dependencies import AppSettings, DbSession
from hr_payroll_engine.api.schemas import (
    ErrorResponse,
    PayrollGenerateRequest,
    PayrollGenerateResponse,
    PayrollRecordResponse,
    PayrollRecordUpdate,
    PayrollRunResultItem,
)
from hr_payroll_engine.services.payroll_record_service import PayrollRecordService
from hr_payroll_engine.services.payroll_run_service import PayrollRunGenerator

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.post(
    "/generate",
    response_model=PayrollGenerateResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}},
)
async def generate_payroll(
    db: DbSession,
    settings: AppSettings,
    payload: PayrollGenerateRequest,
) -> PayrollGenerateResponse:
    """Generate DRAFT payroll records for a month. Safe to re-run."""
    generator = PayrollRunGenerator(db, settings)
    summary = await generator.generate(payload.month, payload.year)
    return PayrollGenerateResponse(
        month=summary.month,
        year=summary.year,
        total=summary.total,
        created=summary.created,
        existing=summary.existing,
        skipped=summary.skipped,
        failed=summary.failed,
        results=[PayrollRunResultItem.model_validate(r) for r in summary.results],
    )


@router.get("/records", response_model=list[PayrollRecordResponse])
async def list_records(
    db: DbSession,
    settings: AppSettings,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: int | None = None,
    employee_id: int | None = None,
) -> list[PayrollRecordResponse]:
    """List payroll records with optional filters."""
    generator = PayrollRunGenerator(db, settings)
    records = await generator.list_records(month, year, employee_id)
    return [PayrollRecordResponse.model_validate(r) for r in records]


@router.get(
    "/records/{record_id}",
    response_model=PayrollRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_record(
    db: DbSession,
    settings: AppSettings,
    record_id: Annotated[int, Path()],
) -> PayrollRecordResponse:
    service = PayrollRecordService(db, settings)
    return PayrollRecordResponse.model_validate(await service.get_record(record_id))


@router.patch(
    "/records/{record_id}",
    response_model=PayrollRecordResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_record(
    db: DbSession,
    settings: AppSettings,
    record_id: Annotated[int, Path()],
    payload: PayrollRecordUpdate,
) -> PayrollRecordResponse:
    """Recalculate a DRAFT record and/or move it to PROCESSED or PAID."""
    service = PayrollRecordService(db, settings)
    record = await service.update(
        record_id,
        lop_days=payload.lop_days,
        other_allowances=payload.other_allowances,
        other_deductions=payload.other_deductions,
        status=payload.status,
    )
    return PayrollRecordResponse.model_validate(record)
