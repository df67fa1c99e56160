"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hr_payroll.services.ledger import PayrollItemType
from hr_payroll.services.rbac import Role
from hr_payroll.services.state_machine import PayrollStatus

Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


# ============================================================================
# Salary structure schemas
# ============================================================================


class SalaryStructureCreate(BaseModel):
    """Schema for creating a salary structure."""

    employee_id: int
    basic_salary: Money
    house_rent_allowance: Money | None = None
    conveyance_allowance: Money | None = None
    medical_allowance: Money | None = None
    special_allowance: Money | None = None
    effective_from: date
    effective_to: date | None = None
    active: bool = True

    @model_validator(mode="after")
    def check_window(self) -> "SalaryStructureCreate":
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError("effective_to must not be before effective_from")
        return self


class SalaryStructureUpdate(BaseModel):
    """Schema for partially updating a salary structure."""

    model_config = ConfigDict(extra="forbid")

    house_rent_allowance: Money | None = None
    conveyance_allowance: Money | None = None
    medical_allowance: Money | None = None
    special_allowance: Money | None = None
    effective_to: date | None = None
    active: bool | None = None


class SalaryStructureResponse(BaseModel):
    """Schema for salary structure response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    basic_salary: Decimal
    house_rent_allowance: Decimal | None = None
    conveyance_allowance: Decimal | None = None
    medical_allowance: Decimal | None = None
    special_allowance: Decimal | None = None
    effective_from: date
    effective_to: date | None = None
    active: bool


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollCreate(BaseModel):
    """Schema for creating a draft payroll.

    ``basic_salary`` overrides the employee's current salary structure.
    """

    employee_id: int
    pay_period_start: date
    pay_period_end: date
    basic_salary: Money | None = None


class PayrollResponse(BaseModel):
    """Schema for payroll response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    pay_period_start: date
    pay_period_end: date
    process_date: datetime
    basic_salary: Decimal
    total_earnings: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    status: PayrollStatus
    approved_by: int | None = None
    approval_date: datetime | None = None


class PayrollItemCreate(BaseModel):
    """Schema for adding an earning or deduction."""

    item_type: PayrollItemType
    item_name: str = Field(min_length=1)
    amount: Money
    description: str | None = None


class PayrollItemResponse(BaseModel):
    """Schema for payroll item response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    payroll_id: int
    item_type: PayrollItemType
    item_name: str
    amount: Decimal
    description: str | None = None


class PayrollDetailResponse(PayrollResponse):
    """Payroll with its line items."""

    items: list[PayrollItemResponse] = []


class PayrollTotalResponse(BaseModel):
    """Sum of net salary over paid payrolls."""

    total_payroll: Decimal


# ============================================================================
# Audit and role schemas
# ============================================================================


class AuditLogResponse(BaseModel):
    """Schema for audit log entry response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None = None
    action: str
    entity_type: str
    entity_id: int | None = None
    details: str | None = None
    timestamp: datetime


class CheckRoleResponse(BaseModel):
    """Whether the caller meets a role minimum."""

    role: Role
    required_role: str
    has_access: bool


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
