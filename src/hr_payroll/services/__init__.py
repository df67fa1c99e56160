"""Payroll services."""

from hr_payroll.services.audit_service import AuditRecorder
from hr_payroll.services.ledger import LedgerTotals, PayrollItemType, PayrollLedger, summarize
from hr_payroll.services.payroll_service import PayrollService
from hr_payroll.services.rbac import AccessPolicy, Actor, Role, RoleHierarchy, has_access
from hr_payroll.services.salary_service import SalaryStructureResolver
from hr_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollStateMachine,
    PayrollStatus,
)

__all__ = [
    "AccessPolicy",
    "Actor",
    "AuditRecorder",
    "InvalidTransitionError",
    "LedgerTotals",
    "PayrollItemType",
    "PayrollLedger",
    "PayrollService",
    "PayrollStateMachine",
    "PayrollStatus",
    "Role",
    "RoleHierarchy",
    "SalaryStructureResolver",
    "has_access",
    "summarize",
]
