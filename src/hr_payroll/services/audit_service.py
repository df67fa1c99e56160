"""Audit recorder for state-changing actions."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.models import AuditLog, utcnow
from hr_payroll.services.rbac import AccessPolicy, Actor, require_role

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Append-only audit log.

    Entries are written inside a SAVEPOINT so a failed insert rolls back
    only itself. Workflow services call ``try_record``: an audit failure
    is logged and the financial operation that triggered it still
    completes.
    """

    DEFAULT_LIMIT = 20

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        actor_id: int | None,
        action: str,
        entity_type: str,
        entity_id: int | None,
        detail: str | None = None,
    ) -> AuditLog:
        """Write one entry. Storage errors propagate."""
        entry = AuditLog(
            user_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=detail,
            timestamp=utcnow(),
        )
        async with self.session.begin_nested():
            await self._insert(entry)
        return entry

    async def try_record(
        self,
        actor_id: int | None,
        action: str,
        entity_type: str,
        entity_id: int | None,
        detail: str | None = None,
    ) -> AuditLog | None:
        """Write one entry, logging and returning None on storage failure."""
        try:
            return await self.record(actor_id, action, entity_type, entity_id, detail)
        except SQLAlchemyError:
            logger.warning(
                "Failed to record audit entry action=%s entity=%s:%s actor=%s",
                action,
                entity_type,
                entity_id,
                actor_id,
                exc_info=True,
            )
            return None

    async def _insert(self, entry: AuditLog) -> None:
        self.session.add(entry)
        await self.session.flush()

    async def recent(self, limit: int = DEFAULT_LIMIT) -> list[AuditLog]:
        """Newest entries first."""
        result = await self.session.execute(
            select(AuditLog)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def recent_for(self, actor: Actor | None, limit: int = DEFAULT_LIMIT) -> list[AuditLog]:
        """``recent`` gated on the audit-log reading role."""
        require_role(actor, AccessPolicy.VIEW_AUDIT_LOG)
        return await self.recent(limit)

    async def by_user(self, user_id: int) -> list[AuditLog]:
        result = await self.session.execute(
            select(AuditLog)
            .where(AuditLog.user_id == user_id)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        )
        return list(result.scalars().all())

    async def by_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        result = await self.session.execute(
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        )
        return list(result.scalars().all())
