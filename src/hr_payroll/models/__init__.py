"""ORM models."""

from hr_payroll.models.audit import AuditLog
from hr_payroll.models.base import Base, TimestampMixin, utcnow
from hr_payroll.models.employee import Employee, User
from hr_payroll.models.payroll import Payroll, PayrollItem
from hr_payroll.models.salary import SalaryStructure

__all__ = [
    "AuditLog",
    "Base",
    "Employee",
    "Payroll",
    "PayrollItem",
    "SalaryStructure",
    "TimestampMixin",
    "User",
    "utcnow",
]
