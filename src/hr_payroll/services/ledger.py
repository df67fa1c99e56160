"""Payroll line-item ledger and total recomputation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.errors import InvalidState, NotFound, ValidationError
from hr_payroll.models import Payroll, PayrollItem
from hr_payroll.money import MAX_AMOUNT, ZERO, non_negative_money, round_to_cents
from hr_payroll.services.audit_service import AuditRecorder
from hr_payroll.services.rbac import AccessPolicy, Actor, require_role
from hr_payroll.services.state_machine import PayrollStateMachine

logger = logging.getLogger(__name__)


class PayrollItemType(str, Enum):
    """Payroll line item types."""

    EARNING = "earning"
    DEDUCTION = "deduction"


class _ItemLike(Protocol):
    item_type: str
    amount: Decimal


@dataclass(frozen=True)
class LedgerTotals:
    """Summed earnings and deductions of one payroll."""

    earnings: Decimal = ZERO
    deductions: Decimal = ZERO

    def net_for(self, basic_salary: Decimal) -> Decimal:
        """net = basic + earnings - deductions."""
        return round_to_cents(basic_salary + self.earnings - self.deductions)


def summarize(items: Iterable[_ItemLike]) -> LedgerTotals:
    """Sum item amounts by type.

    Decimal addition is exact, so the result does not depend on the order
    of ``items``.
    """
    earnings = ZERO
    deductions = ZERO
    for item in items:
        if item.item_type == PayrollItemType.EARNING:
            earnings += item.amount
        elif item.item_type == PayrollItemType.DEDUCTION:
            deductions += item.amount
        else:
            raise ValidationError(f"Unknown item type '{item.item_type}'")
    return LedgerTotals(round_to_cents(earnings), round_to_cents(deductions))


def check_totals(basic_salary: Decimal, totals: LedgerTotals) -> None:
    """Reject totals the payroll columns cannot hold."""
    for name, value in (
        ("total_earnings", totals.earnings),
        ("total_deductions", totals.deductions),
        ("net_salary", totals.net_for(basic_salary)),
    ):
        if abs(value) > MAX_AMOUNT:
            raise ValidationError(
                f"{name} would exceed {MAX_AMOUNT}",
                {"field": name, "value": str(value)},
            )


def apply_totals(payroll: Payroll, totals: LedgerTotals) -> None:
    """Write derived totals and net salary onto a payroll.

    This is the only place the derived columns are assigned after creation.
    """
    payroll.total_earnings = totals.earnings
    payroll.total_deductions = totals.deductions
    payroll.net_salary = totals.net_for(payroll.basic_salary)


class PayrollLedger:
    """Earning/deduction items of payrolls.

    ``add_item`` locks the payroll row, inserts the item and rewrites the
    totals from the full item set in the same transaction, so no reader
    sees an item without its effect on the totals.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditRecorder(session)

    async def add_item(
        self,
        actor: Actor | None,
        payroll_id: int,
        item_type: PayrollItemType | str,
        item_name: str,
        amount: Decimal,
        description: str | None = None,
    ) -> PayrollItem:
        """Append an item to a draft payroll and recompute its totals.

        Raises:
            ValidationError: unknown type, empty name, negative amount, or
                totals the payroll columns cannot hold
            NotFound: payroll missing
            InvalidState: payroll is no longer draft
        """
        actor = require_role(actor, AccessPolicy.PROCESS_PAYROLL)

        try:
            kind = PayrollItemType(item_type)
        except ValueError:
            raise ValidationError(
                f"Invalid item type '{item_type}'",
                {"item_type": str(item_type)},
            )
        name = (item_name or "").strip()
        if not name:
            raise ValidationError("Item name is required", {"field": "item_name"})
        value = non_negative_money(amount, "amount")

        payroll = await self._get_payroll_for_update(payroll_id)
        if not PayrollStateMachine.can_modify_items(payroll.status):
            raise InvalidState(
                "Cannot modify items for approved or paid payroll",
                {"payroll_id": payroll_id, "status": payroll.status},
            )

        item = PayrollItem(
            payroll_id=payroll_id,
            item_type=kind.value,
            item_name=name,
            amount=value,
            description=description,
        )
        totals = summarize([*await self.items_for(payroll_id), item])
        check_totals(payroll.basic_salary, totals)

        self.session.add(item)
        apply_totals(payroll, totals)
        await self.session.flush()

        logger.info(
            "Payroll %s: added %s '%s' %s (net now %s)",
            payroll_id,
            kind.value,
            name,
            value,
            payroll.net_salary,
        )
        await self.audit.try_record(
            actor.user_id,
            "add_item",
            "payroll",
            payroll_id,
            f"{kind.value.capitalize()} '{name}' of {value} added",
        )
        return item

    async def items_for(self, payroll_id: int) -> list[PayrollItem]:
        """Items of a payroll in insertion order."""
        result = await self.session.execute(
            select(PayrollItem)
            .where(PayrollItem.payroll_id == payroll_id)
            .order_by(PayrollItem.id)
        )
        return list(result.scalars().all())

    async def _get_payroll_for_update(self, payroll_id: int) -> Payroll:
        result = await self.session.execute(
            select(Payroll)
            .where(Payroll.id == payroll_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        payroll = result.scalar_one_or_none()
        if payroll is None:
            raise NotFound("Payroll", payroll_id)
        return payroll
