"""Payroll state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from hr_payroll.errors import InvalidState


class PayrollStatus(str, Enum):
    """Payroll status values."""

    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


def _status_value(status: PayrollStatus | str) -> str:
    return status.value if isinstance(status, PayrollStatus) else str(status)


class InvalidTransitionError(InvalidState):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        from_status: PayrollStatus | str,
        to_status: PayrollStatus | str,
        reason: str | None = None,
    ):
        self.from_status = _status_value(from_status)
        self.to_status = _status_value(to_status)
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg,
            {"from_status": self.from_status, "to_status": self.to_status},
        )


class PayrollStateMachine:
    """State machine for payroll status transitions.

    Allowed transitions:
    - draft → approved
    - approved → paid

    Paid is terminal. Nothing moves backwards or skips a state.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollStatus.DRAFT: [PayrollStatus.APPROVED],
        PayrollStatus.APPROVED: [PayrollStatus.PAID],
        PayrollStatus.PAID: [],
    }

    # Statuses where line items can be added
    ITEMS_MUTABLE = {PayrollStatus.DRAFT}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_status_value(from_status), [])
        return _status_value(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_modify_items(cls, status: str) -> bool:
        """Check if earnings/deductions can be added in this status."""
        return _status_value(status) in cls.ITEMS_MUTABLE

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(_status_value(status), [])

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        allowed = cls.VALID_TRANSITIONS.get(_status_value(current_status), [])
        return [_status_value(s) for s in allowed]
