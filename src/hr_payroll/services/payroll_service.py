"""Payroll service - orchestrates the payroll lifecycle."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.errors import NotFound, ValidationError
from hr_payroll.models import Employee, Payroll, PayrollItem, utcnow
from hr_payroll.money import ZERO, non_negative_money
from hr_payroll.services.audit_service import AuditRecorder
from hr_payroll.services.ledger import LedgerTotals, PayrollLedger
from hr_payroll.services.rbac import (
    AccessPolicy,
    Actor,
    Role,
    require_owner_or_role,
    require_role,
)
from hr_payroll.services.salary_service import SalaryStructureResolver
from hr_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollStateMachine,
    PayrollStatus,
)

logger = logging.getLogger(__name__)


class PayrollService:
    """Service for managing the payroll lifecycle.

    Operations:
    - create_payroll: snapshot basic salary and open a draft
    - approve_payroll: draft → approved, recording approver and date
    - mark_paid: approved → paid
    - get/list queries used by the HTTP layer

    Transitions finish with a conditional UPDATE on the expected status, so
    two concurrent transitions on one payroll cannot both succeed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditRecorder(session)
        self.ledger = PayrollLedger(session)
        self.salary = SalaryStructureResolver(session)

    async def create_payroll(
        self,
        actor: Actor | None,
        employee_id: int,
        pay_period_start: date,
        pay_period_end: date,
        basic_salary_override: Decimal | None = None,
    ) -> Payroll:
        """Create a draft payroll.

        The basic salary is the override when given, else the employee's
        current salary structure. It is copied, not referenced.

        Raises:
            ValidationError: period start after end, bad override
            NotFound: employee missing, or no override and no current structure
        """
        actor = require_role(actor, AccessPolicy.PROCESS_PAYROLL)

        if pay_period_start > pay_period_end:
            raise ValidationError(
                "Pay period start must not be after pay period end",
                {
                    "pay_period_start": pay_period_start.isoformat(),
                    "pay_period_end": pay_period_end.isoformat(),
                },
            )
        if basic_salary_override is not None:
            basic_salary = non_negative_money(basic_salary_override, "basic_salary")

        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)

        if basic_salary_override is None:
            structure = await self.salary.current_structure(employee_id)
            basic_salary = structure.basic_salary

        totals = LedgerTotals()
        payroll = Payroll(
            employee_id=employee_id,
            pay_period_start=pay_period_start,
            pay_period_end=pay_period_end,
            process_date=utcnow(),
            basic_salary=basic_salary,
            total_earnings=totals.earnings,
            total_deductions=totals.deductions,
            net_salary=totals.net_for(basic_salary),
            status=PayrollStatus.DRAFT.value,
        )
        self.session.add(payroll)
        await self.session.flush()

        logger.info(
            "Payroll %s created for employee %s, period %s..%s, basic %s",
            payroll.id,
            employee_id,
            pay_period_start,
            pay_period_end,
            basic_salary,
        )
        await self.audit.try_record(
            actor.user_id,
            "create",
            "payroll",
            payroll.id,
            f"Payroll created for employee ID {employee.employee_code}",
        )
        return payroll

    async def approve_payroll(self, actor: Actor | None, payroll_id: int) -> Payroll:
        """Approve a draft payroll. Items can no longer be added afterwards."""
        actor = require_role(actor, AccessPolicy.APPROVE_PAYROLL)
        return await self.transition_status(
            actor,
            payroll_id,
            PayrollStatus.APPROVED,
            values={"approved_by": actor.user_id, "approval_date": utcnow()},
            action="approve",
        )

    async def mark_paid(self, actor: Actor | None, payroll_id: int) -> Payroll:
        """Mark an approved payroll as paid. Paying a draft is rejected."""
        actor = require_role(actor, AccessPolicy.APPROVE_PAYROLL)
        return await self.transition_status(
            actor,
            payroll_id,
            PayrollStatus.PAID,
            action="paid",
        )

    async def transition_status(
        self,
        actor: Actor,
        payroll_id: int,
        to_status: PayrollStatus,
        action: str,
        values: dict[str, Any] | None = None,
    ) -> Payroll:
        """Move a payroll to ``to_status``.

        Raises InvalidTransitionError if the transition is not allowed from
        the current status, including when a concurrent writer changed the
        status between the read and the update.
        """
        payroll = await self.get_payroll(payroll_id, for_update=True)
        from_status = payroll.status

        try:
            PayrollStateMachine.validate_transition(from_status, to_status)
        except InvalidTransitionError:
            logger.warning(
                "Rejected payroll %s transition %s -> %s",
                payroll_id,
                from_status,
                to_status.value,
            )
            raise

        result = await self.session.execute(
            update(Payroll)
            .where(Payroll.id == payroll_id, Payroll.status == from_status)
            .values(status=to_status.value, **(values or {}))
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(payroll)

        if result.rowcount == 0:
            raise InvalidTransitionError(
                payroll.status,
                to_status,
                "Status changed during transition",
            )

        logger.info("Payroll %s: %s -> %s", payroll_id, from_status, to_status.value)
        await self.audit.try_record(
            actor.user_id,
            action,
            "payroll",
            payroll_id,
            f"Payroll {action} for employee ID {payroll.employee_id}",
        )
        return payroll

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_payroll(self, payroll_id: int, for_update: bool = False) -> Payroll:
        query = select(Payroll).where(Payroll.id == payroll_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        payroll = result.scalar_one_or_none()
        if payroll is None:
            raise NotFound("Payroll", payroll_id)
        return payroll

    async def get_payroll_for(
        self, actor: Actor | None, payroll_id: int
    ) -> tuple[Payroll, list[PayrollItem]]:
        """Payroll with its items, for its owner or HR staff."""
        require_role(actor, Role.EMPLOYEE)
        payroll = await self.get_payroll(payroll_id)
        employee = await self.session.get(Employee, payroll.employee_id)
        require_owner_or_role(actor, employee.user_id if employee else None)
        items = await self.ledger.items_for(payroll_id)
        return payroll, items

    async def list_payrolls(
        self,
        actor: Actor | None,
        employee_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Payroll]:
        """Filter by employee, or by period end date range; default is pending.

        A period filter needs both ``start_date`` and ``end_date``.
        """
        require_role(actor, AccessPolicy.LIST_PAYROLLS)
        if (start_date is None) != (end_date is None):
            raise ValidationError(
                "start_date and end_date must be given together",
                {"missing": "end_date" if end_date is None else "start_date"},
            )
        if employee_id is not None:
            return await self.list_by_employee(employee_id)
        if start_date is not None and end_date is not None:
            return await self.list_by_period(start_date, end_date)
        return await self.list_pending()

    async def list_by_employee(self, employee_id: int) -> list[Payroll]:
        result = await self.session.execute(
            select(Payroll)
            .where(Payroll.employee_id == employee_id)
            .order_by(Payroll.pay_period_end.desc(), Payroll.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_period(self, start_date: date, end_date: date) -> list[Payroll]:
        """Payrolls whose period ends within [start_date, end_date]."""
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        result = await self.session.execute(
            select(Payroll)
            .where(Payroll.pay_period_end >= start_date, Payroll.pay_period_end <= end_date)
            .order_by(Payroll.pay_period_end.desc(), Payroll.id.desc())
        )
        return list(result.scalars().all())

    async def list_pending(self) -> list[Payroll]:
        """Draft payrolls awaiting approval, newest first."""
        result = await self.session.execute(
            select(Payroll)
            .where(Payroll.status == PayrollStatus.DRAFT.value)
            .order_by(Payroll.process_date.desc(), Payroll.id.desc())
        )
        return list(result.scalars().all())

    async def list_pending_for(self, actor: Actor | None) -> list[Payroll]:
        require_role(actor, AccessPolicy.APPROVE_PAYROLL)
        return await self.list_pending()

    async def total_paid(self, actor: Actor | None) -> Decimal:
        """Sum of net salary over paid payrolls."""
        require_role(actor, AccessPolicy.APPROVE_PAYROLL)
        result = await self.session.execute(
            select(Payroll.net_salary).where(Payroll.status == PayrollStatus.PAID.value)
        )
        return sum(result.scalars().all(), ZERO)
