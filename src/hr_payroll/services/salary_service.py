"""Salary structure resolution and supersession."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.database import acquire_employee_lock
from hr_payroll.errors import NotFound, ValidationError
from hr_payroll.models import Employee, SalaryStructure
from hr_payroll.money import non_negative_money
from hr_payroll.services.audit_service import AuditRecorder
from hr_payroll.services.rbac import (
    AccessPolicy,
    Actor,
    Role,
    require_owner_or_role,
    require_role,
)

logger = logging.getLogger(__name__)

ALLOWANCE_FIELDS = (
    "house_rent_allowance",
    "conveyance_allowance",
    "medical_allowance",
    "special_allowance",
)

UPDATABLE_FIELDS = frozenset(ALLOWANCE_FIELDS) | {"effective_to", "active"}


class SalaryStructureNotFoundError(NotFound):
    """Raised when no structure is current for an employee."""

    def __init__(self, employee_id: int, as_of: date):
        self.employee_id = employee_id
        self.as_of = as_of
        super().__init__(
            "Salary structure",
            message=(
                f"No current salary structure found for employee {employee_id} "
                f"on {as_of.isoformat()}"
            ),
        )
        self.context.update({"employee_id": employee_id, "as_of": as_of.isoformat()})


class SalaryStructureResolver:
    """Resolves the salary structure in force for an employee.

    Structure selection:
    1. Only ``active`` rows are candidates
    2. The effective window must include ``as_of``
       (``effective_from <= as_of`` and open-ended or ``effective_to >= as_of``)
    3. Latest ``effective_from`` wins
    4. Ties go to the most recently created row
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditRecorder(session)

    async def current_structure(
        self,
        employee_id: int,
        as_of: date | None = None,
    ) -> SalaryStructure:
        """Return the structure in force on ``as_of`` (default today).

        Raises:
            SalaryStructureNotFoundError: nothing qualifies
        """
        as_of = as_of or date.today()
        candidates = await self._get_candidate_structures(employee_id, as_of)

        best: SalaryStructure | None = None
        for structure in candidates:
            if best is None or (structure.effective_from, structure.id) > (
                best.effective_from,
                best.id,
            ):
                best = structure

        if best is None:
            raise SalaryStructureNotFoundError(employee_id, as_of)
        return best

    async def current_structure_for(
        self,
        actor: Actor | None,
        employee_id: int,
        as_of: date | None = None,
    ) -> SalaryStructure:
        """``current_structure`` for the employee's own user or HR staff."""
        require_role(actor, Role.EMPLOYEE)
        employee = await self._get_employee(employee_id)
        require_owner_or_role(actor, employee.user_id)
        return await self.current_structure(employee_id, as_of)

    async def supersede(
        self,
        actor: Actor | None,
        employee_id: int,
        basic_salary: Decimal,
        effective_from: date,
        effective_to: date | None = None,
        active: bool = True,
        **allowances: Decimal | None,
    ) -> SalaryStructure:
        """Create a structure, retiring the currently active one.

        The retirement (``active=False``, ``effective_to`` set to the new
        ``effective_from``) and the insert happen in the caller's
        transaction under a per-employee lock, so readers see both writes
        or neither.
        """
        actor = require_role(actor, AccessPolicy.MANAGE_SALARY)

        unknown = set(allowances) - set(ALLOWANCE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown salary fields: {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)},
            )
        basic = non_negative_money(basic_salary, "basic_salary")
        amounts = {
            name: non_negative_money(value, name) if value is not None else None
            for name, value in allowances.items()
        }
        if effective_to is not None and effective_to < effective_from:
            raise ValidationError(
                "effective_to must not be before effective_from",
                {
                    "effective_from": effective_from.isoformat(),
                    "effective_to": effective_to.isoformat(),
                },
            )

        employee = await self._get_employee(employee_id)
        await acquire_employee_lock(self.session, employee_id)

        retired: list[SalaryStructure] = []
        if active:
            retired = await self._active_structures(employee_id)
            for previous in retired:
                if effective_from < previous.effective_from:
                    raise ValidationError(
                        "New structure cannot start before the active structure",
                        {
                            "active_structure_id": previous.id,
                            "active_effective_from": previous.effective_from.isoformat(),
                        },
                    )
            for previous in retired:
                previous.active = False
                previous.effective_to = effective_from

        structure = SalaryStructure(
            employee_id=employee_id,
            basic_salary=basic,
            effective_from=effective_from,
            effective_to=effective_to,
            active=active,
            **amounts,
        )
        self.session.add(structure)
        await self.session.flush()

        logger.info(
            "Salary structure %s created for employee %s (retired %s)",
            structure.id,
            employee_id,
            [s.id for s in retired],
        )
        await self.audit.try_record(
            actor.user_id,
            "create",
            "salary",
            structure.id,
            f"Salary structure created for employee ID {employee.employee_code}",
        )
        return structure

    async def update(
        self,
        actor: Actor | None,
        structure_id: int,
        changes: dict[str, Any],
    ) -> SalaryStructure:
        """Partially update allowances, close the window, or deactivate.

        Basic salary and start date are fixed once written; use
        ``supersede`` for a new salary. Re-activation is refused because it
        could leave two current structures.
        """
        actor = require_role(actor, AccessPolicy.MANAGE_SALARY)

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)},
            )
        if changes.get("active") is True:
            raise ValidationError("Salary structures cannot be re-activated; create a new one")

        structure = await self.get(structure_id)

        values: dict[str, Any] = {}
        for name in ALLOWANCE_FIELDS:
            if name in changes:
                value = changes[name]
                values[name] = non_negative_money(value, name) if value is not None else None
        if "effective_to" in changes:
            effective_to = changes["effective_to"]
            if effective_to is not None and effective_to < structure.effective_from:
                raise ValidationError(
                    "effective_to must not be before effective_from",
                    {
                        "effective_from": structure.effective_from.isoformat(),
                        "effective_to": effective_to.isoformat(),
                    },
                )
            values["effective_to"] = effective_to
        if changes.get("active") is False:
            values["active"] = False

        for name, value in values.items():
            setattr(structure, name, value)
        await self.session.flush()

        await self.audit.try_record(
            actor.user_id,
            "update",
            "salary",
            structure.id,
            f"Salary structure updated for employee ID {structure.employee_id}",
        )
        return structure

    async def get(self, structure_id: int) -> SalaryStructure:
        structure = await self.session.get(SalaryStructure, structure_id)
        if structure is None:
            raise NotFound("Salary structure", structure_id)
        return structure

    async def history(self, actor: Actor | None, employee_id: int) -> list[SalaryStructure]:
        """All structures of an employee, newest ``effective_from`` first."""
        require_role(actor, AccessPolicy.VIEW_SALARY_HISTORY)
        await self._get_employee(employee_id)
        result = await self.session.execute(
            select(SalaryStructure)
            .where(SalaryStructure.employee_id == employee_id)
            .order_by(SalaryStructure.effective_from.desc(), SalaryStructure.id.desc())
        )
        return list(result.scalars().all())

    async def _get_employee(self, employee_id: int) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)
        return employee

    async def _active_structures(self, employee_id: int) -> list[SalaryStructure]:
        result = await self.session.execute(
            select(SalaryStructure)
            .where(
                SalaryStructure.employee_id == employee_id,
                SalaryStructure.active.is_(True),
            )
            .with_for_update()
        )
        return list(result.scalars().all())

    async def _get_candidate_structures(
        self,
        employee_id: int,
        as_of: date,
    ) -> list[SalaryStructure]:
        """Get all active structures for an employee effective on a date."""
        result = await self.session.execute(
            select(SalaryStructure).where(
                SalaryStructure.employee_id == employee_id,
                SalaryStructure.active.is_(True),
                SalaryStructure.effective_from <= as_of,
                (
                    SalaryStructure.effective_to.is_(None)
                    | (SalaryStructure.effective_to >= as_of)
                ),
            )
        )
        return list(result.scalars().all())
