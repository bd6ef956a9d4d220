"""Comp-off endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from hr_payroll_engine.api.dependencies import AppSettings, DbSession
from hr_payroll_engine.api.schemas import CompOffCreate, CompOffResponse, ErrorResponse
from hr_payroll_engine.services.compoff_service import CompOffService

router = APIRouter(prefix="/comp-offs", tags=["comp-offs"])


@router.post(
    "",
    response_model=CompOffResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def request_comp_off(
    db: DbSession,
    settings: AppSettings,
    payload: CompOffCreate,
) -> CompOffResponse:
    """Claim a comp-off for a worked day."""
    service = CompOffService(db, settings)
    record = await service.request(payload.employee_id, payload.worked_date, payload.reason)
    return CompOffResponse.model_validate(record)


@router.get("", response_model=list[CompOffResponse])
async def list_comp_offs(
    db: DbSession,
    settings: AppSettings,
    employee_id: int | None = None,
) -> list[CompOffResponse]:
    service = CompOffService(db, settings)
    return [CompOffResponse.model_validate(r) for r in await service.list_records(employee_id)]


@router.post(
    "/{record_id}/approve",
    response_model=CompOffResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def approve_comp_off(
    db: DbSession,
    settings: AppSettings,
    record_id: Annotated[int, Path()],
) -> CompOffResponse:
    """Approve a pending comp-off and credit one CO day."""
    service = CompOffService(db, settings)
    record = await service.approve(record_id)
    return CompOffResponse.model_validate(record)
