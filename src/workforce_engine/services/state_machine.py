"""Status state machines for shifts, invoices and payroll runs."""

from __future__ import annotations

from enum import Enum

from workforce_engine.calculators.types import ShiftStatus
from workforce_engine.exceptions import WorkforceEngineError


class InvoiceStatus(str, Enum):
    """Invoice status values."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "draft"
    PAID = "paid"


class InvalidTransitionError(WorkforceEngineError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class _StateMachine:
    """Shared transition checks; subclasses define VALID_TRANSITIONS."""

    VALID_TRANSITIONS: dict[str, list[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            if cls.is_terminal(from_status):
                reason = f"'{from_status}' is terminal"
            else:
                reason = "allowed: " + ", ".join(cls.get_next_statuses(from_status))
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)


class ShiftStateMachine(_StateMachine):
    """Shift lifecycle.

    Allowed transitions:
    - draft → published, assigned, completed
    - published → assigned, completed
    - assigned → assigned (reassign), published (unassign), completed
    - completed is terminal
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        ShiftStatus.DRAFT.value: [
            ShiftStatus.PUBLISHED.value,
            ShiftStatus.ASSIGNED.value,
            ShiftStatus.COMPLETED.value,
        ],
        ShiftStatus.PUBLISHED.value: [ShiftStatus.ASSIGNED.value, ShiftStatus.COMPLETED.value],
        ShiftStatus.ASSIGNED.value: [
            ShiftStatus.ASSIGNED.value,
            ShiftStatus.PUBLISHED.value,
            ShiftStatus.COMPLETED.value,
        ],
        ShiftStatus.COMPLETED.value: [],  # Terminal state
    }

    @classmethod
    def status_for_assignment(cls, current_status: str, assigning: bool) -> str:
        """Target status when an officer is set (assigned) or cleared (published).

        Raises:
            InvalidTransitionError: If the shift can no longer be (un)assigned
        """
        target = (ShiftStatus.ASSIGNED if assigning else ShiftStatus.PUBLISHED).value
        # Clearing an officer from a shift that never had one is a no-op
        if not assigning and current_status in (ShiftStatus.DRAFT.value, ShiftStatus.PUBLISHED.value):
            return current_status
        if not cls.can_transition(current_status, target):
            reason = None
            if current_status == ShiftStatus.COMPLETED.value:
                reason = "completed shifts cannot be reassigned"
            raise InvalidTransitionError(current_status, target, reason)
        return target


class InvoiceStateMachine(_StateMachine):
    """Invoice lifecycle.

    Allowed transitions:
    - draft → sent
    - sent → paid, overdue
    - overdue → paid
    - paid is terminal
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        InvoiceStatus.DRAFT.value: [InvoiceStatus.SENT.value],
        InvoiceStatus.SENT.value: [InvoiceStatus.PAID.value, InvoiceStatus.OVERDUE.value],
        InvoiceStatus.OVERDUE.value: [InvoiceStatus.PAID.value],
        InvoiceStatus.PAID.value: [],  # Terminal state
    }
