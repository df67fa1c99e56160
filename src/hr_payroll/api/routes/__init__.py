"""API routes."""

from hr_payroll.api.routes.audit_logs import router as audit_logs_router
from hr_payroll.api.routes.health import router as health_router
from hr_payroll.api.routes.payrolls import router as payrolls_router
from hr_payroll.api.routes.roles import router as roles_router
from hr_payroll.api.routes.salary_structures import router as salary_structures_router

__all__ = [
    "audit_logs_router",
    "health_router",
    "payrolls_router",
    "roles_router",
    "salary_structures_router",
]
