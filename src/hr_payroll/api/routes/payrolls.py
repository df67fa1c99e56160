"""Payroll API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from hr_payroll.api.dependencies import CurrentActor, DbSession
from hr_payroll.api.schemas import (
    ErrorResponse,
    PayrollCreate,
    PayrollDetailResponse,
    PayrollItemCreate,
    PayrollItemResponse,
    PayrollResponse,
    PayrollTotalResponse,
)
from hr_payroll.models import Payroll, PayrollItem
from hr_payroll.services.payroll_service import PayrollService

router = APIRouter(prefix="/payrolls", tags=["payrolls"])


def _detail(payroll: Payroll, items: list[PayrollItem]) -> PayrollDetailResponse:
    # Built from the loaded items; ``payroll.items`` would lazy-load.
    return PayrollDetailResponse(
        **PayrollResponse.model_validate(payroll).model_dump(),
        items=[PayrollItemResponse.model_validate(i) for i in items],
    )


# ============================================================================
# Queries
# ============================================================================


@router.get(
    "",
    response_model=list[PayrollResponse],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_payrolls(
    db: DbSession,
    actor: CurrentActor,
    employee_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[PayrollResponse]:
    """List payrolls by employee or period; pending ones by default."""
    payrolls = await PayrollService(db).list_payrolls(
        actor,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
    )
    return [PayrollResponse.model_validate(p) for p in payrolls]


@router.get(
    "/pending",
    response_model=list[PayrollResponse],
    responses={403: {"model": ErrorResponse}},
)
async def list_pending_payrolls(
    db: DbSession,
    actor: CurrentActor,
) -> list[PayrollResponse]:
    """Draft payrolls awaiting approval."""
    payrolls = await PayrollService(db).list_pending_for(actor)
    return [PayrollResponse.model_validate(p) for p in payrolls]


@router.get(
    "/total",
    response_model=PayrollTotalResponse,
    responses={403: {"model": ErrorResponse}},
)
async def get_total_paid(
    db: DbSession,
    actor: CurrentActor,
) -> PayrollTotalResponse:
    """Total net salary over paid payrolls."""
    total = await PayrollService(db).total_paid(actor)
    return PayrollTotalResponse(total_payroll=total)


@router.get(
    "/{payroll_id}",
    response_model=PayrollDetailResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_payroll(
    db: DbSession,
    actor: CurrentActor,
    payroll_id: Annotated[int, Path()],
) -> PayrollDetailResponse:
    """Get a payroll with its items."""
    payroll, items = await PayrollService(db).get_payroll_for(actor, payroll_id)
    return _detail(payroll, items)


@router.get(
    "/{payroll_id}/items",
    response_model=list[PayrollItemResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def list_payroll_items(
    db: DbSession,
    actor: CurrentActor,
    payroll_id: Annotated[int, Path()],
) -> list[PayrollItemResponse]:
    """Items of a payroll in insertion order."""
    _, items = await PayrollService(db).get_payroll_for(actor, payroll_id)
    return [PayrollItemResponse.model_validate(i) for i in items]


# ============================================================================
# Lifecycle
# ============================================================================


@router.post(
    "",
    response_model=PayrollResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_payroll(
    db: DbSession,
    actor: CurrentActor,
    payload: PayrollCreate,
) -> PayrollResponse:
    """Create a draft payroll from the employee's current salary."""
    payroll = await PayrollService(db).create_payroll(
        actor,
        payload.employee_id,
        payload.pay_period_start,
        payload.pay_period_end,
        basic_salary_override=payload.basic_salary,
    )
    await db.commit()
    return PayrollResponse.model_validate(payroll)


@router.post(
    "/{payroll_id}/items",
    response_model=PayrollItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def add_payroll_item(
    db: DbSession,
    actor: CurrentActor,
    payroll_id: Annotated[int, Path()],
    payload: PayrollItemCreate,
) -> PayrollItemResponse:
    """Add an earning or deduction to a draft payroll."""
    item = await PayrollService(db).ledger.add_item(
        actor,
        payroll_id,
        payload.item_type,
        payload.item_name,
        payload.amount,
        description=payload.description,
    )
    await db.commit()
    return PayrollItemResponse.model_validate(item)


@router.post(
    "/{payroll_id}/approve",
    response_model=PayrollResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def approve_payroll(
    db: DbSession,
    actor: CurrentActor,
    payroll_id: Annotated[int, Path()],
) -> PayrollResponse:
    """Approve a draft payroll."""
    payroll = await PayrollService(db).approve_payroll(actor, payroll_id)
    await db.commit()
    return PayrollResponse.model_validate(payroll)


@router.post(
    "/{payroll_id}/mark-paid",
    response_model=PayrollResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def mark_payroll_paid(
    db: DbSession,
    actor: CurrentActor,
    payroll_id: Annotated[int, Path()],
) -> PayrollResponse:
    """Mark an approved payroll as paid."""
    payroll = await PayrollService(db).mark_paid(actor, payroll_id)
    await db.commit()
    return PayrollResponse.model_validate(payroll)
