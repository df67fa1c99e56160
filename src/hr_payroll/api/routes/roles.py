"""Role check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Query

from hr_payroll.api.dependencies import CurrentActor
from hr_payroll.api.schemas import CheckRoleResponse, ErrorResponse
from hr_payroll.services.rbac import RoleHierarchy

router = APIRouter(tags=["roles"])


@router.get(
    "/check-role",
    response_model=CheckRoleResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def check_role(
    actor: CurrentActor,
    role: Annotated[str, Query()],
) -> CheckRoleResponse:
    """Whether the caller's role meets ``role`` in the hierarchy."""
    required = RoleHierarchy.parse(role)
    return CheckRoleResponse(
        role=actor.role,
        required_role=required.value,
        has_access=RoleHierarchy.has_access(actor.role, required),
    )
