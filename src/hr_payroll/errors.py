"""Typed failures raised by payroll operations.

Each error carries a stable ``code`` so the HTTP layer can map it to a
status and a user-facing message without string matching.
"""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for all domain failures."""

    code = "PAYROLL_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)


class Unauthorized(PayrollError):
    """No authenticated actor."""

    code = "UNAUTHORIZED"


class Forbidden(PayrollError):
    """Authenticated, but role or ownership is insufficient."""

    code = "FORBIDDEN"


class NotFound(PayrollError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any = None, message: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        if message is None:
            message = f"{entity} not found"
            if entity_id is not None:
                message = f"{entity} {entity_id} not found"
        super().__init__(message, {"entity": entity, "entity_id": entity_id})


class ValidationError(PayrollError):
    """Malformed input."""

    code = "VALIDATION_ERROR"


class InvalidState(PayrollError):
    """Operation not permitted in the current lifecycle state."""

    code = "INVALID_STATE"
