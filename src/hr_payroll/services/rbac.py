"""Role hierarchy and access checks.

Every payroll operation consults this module instead of comparing role
strings inline. Two rules exist:

- hierarchy: administrator > hr_manager > hr_staff > employee, and an
  actor passes when its rank is at least the required rank;
- ownership: an ``employee`` actor may only read records that belong to
  its own user. This is an identity check applied on top of the
  hierarchy check, never instead of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hr_payroll.errors import Forbidden, Unauthorized, ValidationError


class Role(str, Enum):
    """User role values."""

    ADMINISTRATOR = "administrator"
    HR_MANAGER = "hr_manager"
    HR_STAFF = "hr_staff"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of an operation."""

    user_id: int
    role: Role


class RoleHierarchy:
    """Total order over roles."""

    RANKS: dict[Role, int] = {
        Role.ADMINISTRATOR: 4,
        Role.HR_MANAGER: 3,
        Role.HR_STAFF: 2,
        Role.EMPLOYEE: 1,
    }

    @classmethod
    def parse(cls, role: Role | str) -> Role:
        """Convert a role string to ``Role``, raising ValidationError if unknown."""
        if isinstance(role, Role):
            return role
        try:
            return Role(role)
        except ValueError:
            raise ValidationError(f"Invalid role '{role}'", {"role": role})

    @classmethod
    def rank(cls, role: Role | str) -> int:
        return cls.RANKS[cls.parse(role)]

    @classmethod
    def has_access(cls, actual_role: Role | str, required_role: Role | str) -> bool:
        """Check if ``actual_role`` meets the ``required_role`` minimum."""
        return cls.rank(actual_role) >= cls.rank(required_role)


class AccessPolicy:
    """Minimum role per operation group."""

    MANAGE_SALARY = Role.HR_MANAGER
    VIEW_SALARY_HISTORY = Role.HR_STAFF
    PROCESS_PAYROLL = Role.HR_MANAGER
    APPROVE_PAYROLL = Role.HR_MANAGER
    LIST_PAYROLLS = Role.HR_STAFF
    VIEW_OTHERS_RECORDS = Role.HR_STAFF
    VIEW_AUDIT_LOG = Role.HR_MANAGER


def has_access(actual_role: Role | str, required_role: Role | str) -> bool:
    """Module-level shortcut for ``RoleHierarchy.has_access``."""
    return RoleHierarchy.has_access(actual_role, required_role)


def require_role(actor: Actor | None, required_role: Role | str) -> Actor:
    """Return the actor if it meets ``required_role``.

    Raises:
        Unauthorized: no actor.
        Forbidden: actor's role ranks below ``required_role``.
    """
    if actor is None:
        raise Unauthorized("Authentication required")
    required = RoleHierarchy.parse(required_role)
    if not RoleHierarchy.has_access(actor.role, required):
        raise Forbidden(
            f"Requires {required.value} role or higher",
            {"role": RoleHierarchy.parse(actor.role).value, "required_role": required.value},
        )
    return actor


def require_owner_or_role(
    actor: Actor | None,
    owner_user_id: int | None,
    required_role: Role | str = AccessPolicy.VIEW_OTHERS_RECORDS,
) -> Actor:
    """Allow the record's owner (employee role) or anyone at ``required_role``.

    An ``employee`` actor is checked against the hierarchy (minimum
    ``employee``) and then by identity. Other roles go through the
    hierarchy with ``required_role``.
    """
    actor = require_role(actor, Role.EMPLOYEE)
    if RoleHierarchy.parse(actor.role) == Role.EMPLOYEE:
        if owner_user_id is None or owner_user_id != actor.user_id:
            raise Forbidden("Access denied", {"user_id": actor.user_id})
        return actor
    return require_role(actor, required_role)
