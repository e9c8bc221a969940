"""Typed failures raised at the engine and store boundary.

Pure computations report bad input as warnings in their results; the
exceptions here are for conditions the caller has to act on.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID


class WorkforceEngineError(Exception):
    """Base class for all engine errors."""

    retryable: bool = False


class RateNotConfiguredError(WorkforceEngineError):
    """Raised when no tier of a rate chain yields a usable rate."""

    def __init__(self, rate_kind: str, entry_id: UUID | None, tiers: list[str]):
        self.rate_kind = rate_kind
        self.entry_id = entry_id
        self.tiers = tiers
        super().__init__(
            f"No {rate_kind} rate resolvable for time entry {entry_id} "
            f"(checked: {', '.join(tiers)})"
        )


class ConcurrentModificationError(WorkforceEngineError):
    """Raised when an optimistic write keeps losing to concurrent writers."""

    retryable = True

    def __init__(self, resource: str, resource_id: UUID, attempts: int):
        self.resource = resource
        self.resource_id = resource_id
        self.attempts = attempts
        super().__init__(
            f"{resource} {resource_id} was modified concurrently; "
            f"gave up after {attempts} attempt(s)"
        )


class DuplicateCommitError(WorkforceEngineError):
    """Raised when a payroll run or invoice would commit already-committed data."""

    def __init__(self, resource: str, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"Duplicate {resource} commit rejected: {reason}")


class PreviewMismatchError(WorkforceEngineError):
    """Raised when data changed between the reviewed preview and confirmation."""

    def __init__(self, resource: str, expected: str, actual: str):
        self.resource = resource
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{resource} preview {expected} no longer matches current data ({actual}); "
            "review the preview again"
        )


class RecordNotFoundError(WorkforceEngineError):
    """Raised when a referenced record does not exist in the store."""

    def __init__(self, resource: str, resource_id: UUID):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


class EmptyPeriodError(WorkforceEngineError):
    """Raised when confirming a payroll period or invoice with nothing in it."""

    def __init__(self, resource: str, period_start: date | None = None, period_end: date | None = None):
        self.resource = resource
        self.period_start = period_start
        self.period_end = period_end
        scope = f" for {period_start}..{period_end}" if period_start else ""
        super().__init__(f"Nothing to commit for {resource}{scope}")


class InvalidLineItemsError(WorkforceEngineError):
    """Raised when line items fail the quantity x rate = amount check."""

    def __init__(self, resource: str, errors: list[str]):
        self.resource = resource
        self.errors = errors
        super().__init__(f"{resource} line items are inconsistent: {'; '.join(errors)}")
