"""Salary structure model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_payroll.models.employee import Employee


class SalaryStructure(Base, TimestampMixin):
    """Effective-dated salary definition for one employee.

    Rows are never deleted. Superseding a structure closes its window
    (``active=False``, ``effective_to`` set) and inserts a new row.
    """

    __tablename__ = "salary_structures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
    )
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    house_rent_allowance: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    conveyance_allowance: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    medical_allowance: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    special_allowance: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("basic_salary >= 0", name="salary_structure_basic_nonneg"),
        CheckConstraint(
            "effective_to IS NULL OR effective_to >= effective_from",
            name="salary_structure_dates_check",
        ),
        Index("ix_salary_structures_employee_active", "employee_id", "active"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="salary_structures")
