"""Audit log endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from hr_payroll.api.dependencies import CurrentActor, DbSession
from hr_payroll.api.schemas import AuditLogResponse, ErrorResponse
from hr_payroll.services.audit_service import AuditRecorder

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get(
    "",
    response_model=list[AuditLogResponse],
    responses={403: {"model": ErrorResponse}},
)
async def list_audit_logs(
    request: Request,
    db: DbSession,
    actor: CurrentActor,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[AuditLogResponse]:
    """Most recent audit entries, newest first."""
    if limit is None:
        limit = request.app.state.settings.audit_default_limit
    entries = await AuditRecorder(db).recent_for(actor, limit)
    return [AuditLogResponse.model_validate(e) for e in entries]
