"""Payroll and payroll line item models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.models.base import Base

if TYPE_CHECKING:
    from hr_payroll.models.employee import Employee


class Payroll(Base):
    """One employee's payroll for one pay period.

    ``basic_salary`` is a snapshot taken at creation. Totals and net salary
    are derived from the line items and written only by the ledger.
    """

    __tablename__ = "payrolls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
    )
    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    process_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_earnings: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    approved_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=True,
    )
    approval_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'approved', 'paid')",
            name="payroll_status_check",
        ),
        CheckConstraint(
            "pay_period_end >= pay_period_start",
            name="payroll_period_dates_check",
        ),
        CheckConstraint(
            "total_earnings >= 0 AND total_deductions >= 0",
            name="payroll_totals_nonneg",
        ),
        Index("ix_payrolls_employee_id", "employee_id"),
        Index("ix_payrolls_status", "status"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="payrolls")
    items: Mapped[list[PayrollItem]] = relationship(
        back_populates="payroll",
        cascade="all, delete-orphan",
        order_by="PayrollItem.id",
    )


class PayrollItem(Base):
    """Earning or deduction line on a payroll. Immutable once written."""

    __tablename__ = "payroll_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    payroll_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payrolls.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_type: Mapped[str] = mapped_column(String, nullable=False)
    item_name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "item_type IN ('earning', 'deduction')",
            name="payroll_item_type_check",
        ),
        CheckConstraint("amount >= 0", name="payroll_item_amount_nonneg"),
        Index("ix_payroll_items_payroll_id", "payroll_id"),
    )

    # Relationships
    payroll: Mapped[Payroll] = relationship(back_populates="items")
