"""Error taxonomy shared by the ledger engines and the business logic layer.

Every exception carries the offending field or entity so callers can render
their own message; the core itself does not produce user-facing strings.
"""

from __future__ import annotations

from typing import Any, Optional


class BusinessRuleViolation(Exception):
    """Raised when a requested operation violates a domain constraint."""


class ValidationError(BusinessRuleViolation, ValueError):
    """Raised when input fails validation before any computation or write."""

    def __init__(self, field: str, constraint: str, value: Any = None) -> None:
        self.field = field
        self.constraint = constraint
        self.value = value
        super().__init__(f"{field}: {constraint} (got {value!r})")


class IntegrityError(BusinessRuleViolation):
    """Raised when applying a payment would break the settlement invariants."""

    def __init__(self, field: str, constraint: str, value: Any = None) -> None:
        self.field = field
        self.constraint = constraint
        self.value = value
        super().__init__(f"{field}: {constraint} (got {value!r})")


class NotFoundError(BusinessRuleViolation):
    """Raised when a referenced record does not exist at write time."""

    def __init__(self, entity: str, record_id: Optional[str]) -> None:
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"Unknown {entity} id: {record_id}")


class StatusTransitionError(BusinessRuleViolation):
    """Raised when a vehicle or contract state machine refuses a move."""

    def __init__(self, entity: str, record_id: Optional[str], current: str, requested: str) -> None:
        self.entity = entity
        self.record_id = record_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"{entity} '{record_id}' cannot move from {current} to {requested}"
        )


__all__ = [
    "BusinessRuleViolation",
    "ValidationError",
    "IntegrityError",
    "NotFoundError",
    "StatusTransitionError",
]
