"""Fixed-point money helpers.

All amounts are ``Decimal`` with two fractional digits. Persistence uses
``Numeric(10, 2)``, so the largest storable value is 99,999,999.99.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from hr_payroll.errors import ValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("99999999.99")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Coerce a user-supplied value to a cents-precision Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal("0.10"), not the
    binary expansion.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", {"field": field})
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number", {"field": field, "value": str(value)})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite", {"field": field})
    try:
        return round_to_cents(amount)
    except InvalidOperation:
        # quantize fails once the result needs more digits than the context allows
        raise ValidationError(
            f"{field} is out of range",
            {"field": field, "value": str(amount)},
        )


def non_negative_money(value: Any, field: str = "amount") -> Decimal:
    """Like ``to_money`` but rejects negatives and values past the column limit."""
    amount = to_money(value, field)
    if amount < 0:
        raise ValidationError(
            f"{field} must not be negative",
            {"field": field, "value": str(amount)},
        )
    if amount > MAX_AMOUNT:
        raise ValidationError(
            f"{field} exceeds {MAX_AMOUNT}",
            {"field": field, "value": str(amount)},
        )
    return amount
