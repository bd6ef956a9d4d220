"""Employee lifecycle and salary endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from hr_payroll_engine.api.dependencies import AppSettings, DbSession
from hr_payroll_engine.api.schemas import (
    EmployeeResponse,
    ErrorResponse,
    IncrementRequest,
    NextCodeResponse,
    SalaryHistoryResponse,
    SalaryStructureResponse,
    SeparationRequest,
)
from hr_payroll_engine.services.employee_service import EmployeeService
from hr_payroll_engine.services.salary_service import SalaryService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post(
    "/next-code",
    response_model=NextCodeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def reserve_employee_code(db: DbSession, settings: AppSettings) -> NextCodeResponse:
    """Reserve the next sequential employee code."""
    service = EmployeeService(db, settings)
    return NextCodeResponse(employee_code=await service.next_employee_code())


@router.get("", response_model=list[EmployeeResponse])
async def list_employees(
    db: DbSession,
    settings: AppSettings,
    employee_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[EmployeeResponse]:
    service = EmployeeService(db, settings)
    employees = await service.list_employees(employee_status)
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_employee(
    db: DbSession,
    settings: AppSettings,
    employee_id: Annotated[int, Path()],
) -> EmployeeResponse:
    service = EmployeeService(db, settings)
    return EmployeeResponse.model_validate(await service.get_employee(employee_id))


@router.post(
    "/{employee_id}/publish",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def publish_employee(
    db: DbSession,
    settings: AppSettings,
    employee_id: Annotated[int, Path()],
) -> EmployeeResponse:
    service = EmployeeService(db, settings)
    return EmployeeResponse.model_validate(await service.publish(employee_id))


@router.post(
    "/{employee_id}/separate",
    response_model=EmployeeResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def separate_employee(
    db: DbSession,
    settings: AppSettings,
    employee_id: Annotated[int, Path()],
    payload: SeparationRequest,
) -> EmployeeResponse:
    """Record a resignation, termination or absconding."""
    service = EmployeeService(db, settings)
    employee = await service.separate(employee_id, payload.status, payload.date_of_leaving)
    return EmployeeResponse.model_validate(employee)


@router.post(
    "/{employee_id}/increment",
    response_model=SalaryStructureResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def apply_increment(
    db: DbSession,
    employee_id: Annotated[int, Path()],
    payload: IncrementRequest,
) -> SalaryStructureResponse:
    """Archive the current salary structure and apply new components."""
    service = SalaryService(db)
    structure = await service.apply_increment(
        employee_id,
        payload.components.model_dump(),
        payload.effective_from,
        remarks=payload.remarks,
        increment_percentage=payload.increment_percentage,
    )
    return SalaryStructureResponse.model_validate(structure)


@router.get(
    "/{employee_id}/salary",
    response_model=SalaryStructureResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_salary_structure(
    db: DbSession,
    employee_id: Annotated[int, Path()],
) -> SalaryStructureResponse:
    service = SalaryService(db)
    return SalaryStructureResponse.model_validate(await service.get_structure(employee_id))


@router.get(
    "/{employee_id}/salary-history",
    response_model=list[SalaryHistoryResponse],
)
async def salary_history(
    db: DbSession,
    employee_id: Annotated[int, Path()],
) -> list[SalaryHistoryResponse]:
    service = SalaryService(db)
    return [SalaryHistoryResponse.model_validate(h) for h in await service.salary_history(employee_id)]
