"""Salary structure endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from hr_payroll.api.dependencies import CurrentActor, DbSession
from hr_payroll.api.schemas import (
    ErrorResponse,
    SalaryStructureCreate,
    SalaryStructureResponse,
    SalaryStructureUpdate,
)
from hr_payroll.services.salary_service import ALLOWANCE_FIELDS, SalaryStructureResolver

router = APIRouter(prefix="/salary-structures", tags=["salary-structures"])


@router.post(
    "",
    response_model=SalaryStructureResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_salary_structure(
    db: DbSession,
    actor: CurrentActor,
    payload: SalaryStructureCreate,
) -> SalaryStructureResponse:
    """Create a structure, retiring the employee's active one."""
    allowances = payload.model_dump(include=set(ALLOWANCE_FIELDS))
    structure = await SalaryStructureResolver(db).supersede(
        actor,
        payload.employee_id,
        payload.basic_salary,
        payload.effective_from,
        effective_to=payload.effective_to,
        active=payload.active,
        **allowances,
    )
    await db.commit()
    return SalaryStructureResponse.model_validate(structure)


@router.put(
    "/{structure_id}",
    response_model=SalaryStructureResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_salary_structure(
    db: DbSession,
    actor: CurrentActor,
    structure_id: Annotated[int, Path()],
    payload: SalaryStructureUpdate,
) -> SalaryStructureResponse:
    """Partially update allowances, end date or deactivate."""
    structure = await SalaryStructureResolver(db).update(
        actor, structure_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return SalaryStructureResponse.model_validate(structure)


@router.get(
    "/employee/{employee_id}",
    response_model=list[SalaryStructureResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_salary_history(
    db: DbSession,
    actor: CurrentActor,
    employee_id: Annotated[int, Path()],
) -> list[SalaryStructureResponse]:
    """Salary history of an employee, newest first."""
    structures = await SalaryStructureResolver(db).history(actor, employee_id)
    return [SalaryStructureResponse.model_validate(s) for s in structures]


@router.get(
    "/current/{employee_id}",
    response_model=SalaryStructureResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_current_salary_structure(
    db: DbSession,
    actor: CurrentActor,
    employee_id: Annotated[int, Path()],
) -> SalaryStructureResponse:
    """Structure in force today."""
    structure = await SalaryStructureResolver(db).current_structure_for(actor, employee_id)
    return SalaryStructureResponse.model_validate(structure)
