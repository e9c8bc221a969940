"""Type definitions for the computation pipeline.

Snapshots are frozen: calculators read them and return new derived values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class EmploymentStatus(str, Enum):
    """Officer employment status values."""

    ACTIVE = "active"
    ONBOARDING = "onboarding"
    TERMINATED = "terminated"


class ShiftStatus(str, Enum):
    """Shift lifecycle status values."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ASSIGNED = "assigned"
    COMPLETED = "completed"


class TimeEntryStatus(str, Enum):
    """Time entry review status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class GeofenceEventType(str, Enum):
    """Geofence boundary crossing direction."""

    ENTER = "enter"
    EXIT = "exit"


class ConflictKind(str, Enum):
    """Scheduling conflict classifications."""

    DOUBLE_BOOKED = "double_booked"
    REST_PERIOD = "rest_period"
    AVAILABILITY = "availability"
    WEEKLY_OVERTIME = "weekly_overtime"


class ConflictSeverity(str, Enum):
    """How strongly a conflict should be surfaced. Never blocks assignment."""

    WARNING = "warning"
    ERROR = "error"


class WarningKind(str, Enum):
    """Data-integrity problems that exclude an entry from a computation."""

    NEGATIVE_HOURS = "negative_hours"
    MISSING_OFFICER = "missing_officer"
    MISSING_SITE = "missing_site"
    OPEN_ENTRY = "open_entry"
    CONFIGURATION_MISSING = "configuration_missing"


# ============================================================================
# Record snapshots
# ============================================================================


@dataclass(frozen=True)
class Deduction:
    """Flat per-period deduction."""

    name: str
    amount: Decimal


@dataclass(frozen=True)
class Financials:
    """Officer pay configuration."""

    base_rate: Decimal | None = None
    overtime_rate: Decimal | None = None
    deductions: tuple[Deduction, ...] = ()

    @property
    def deductions_total(self) -> Decimal:
        return sum((d.amount for d in self.deductions), Decimal("0"))


@dataclass(frozen=True)
class Officer:
    """Officer snapshot."""

    officer_id: UUID
    full_name: str = ""
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    financials: Financials | None = None


@dataclass(frozen=True)
class BillingSettings:
    """Client billing rates."""

    standard_rate: Decimal | None = None
    holiday_rate: Decimal | None = None
    emergency_rate: Decimal | None = None


@dataclass(frozen=True)
class Client:
    """Client snapshot."""

    client_id: UUID
    name: str = ""
    billing_settings: BillingSettings | None = None


@dataclass(frozen=True)
class Site:
    """Site snapshot with its geofence."""

    site_id: UUID
    client_id: UUID
    lat: float
    lng: float
    radius: float  # meters
    name: str = ""

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"Site {self.site_id} radius must be positive, got {self.radius}")


@dataclass(frozen=True)
class Interval:
    """Half-open time interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Interval end {self.end} must be after start {self.start}")

    def overlaps(self, other: Interval) -> bool:
        return self.start < other.end and self.end > other.start


@dataclass(frozen=True)
class Shift:
    """Shift snapshot. May cross midnight."""

    shift_id: UUID
    site_id: UUID
    start_time: datetime
    end_time: datetime
    officer_id: UUID | None = None
    status: ShiftStatus = ShiftStatus.DRAFT
    pay_rate: Decimal | None = None
    bill_rate: Decimal | None = None
    break_duration: int = 0  # minutes, unpaid

    def __post_init__(self) -> None:
        if self.end_time <= self.start_time:
            raise ValueError(
                f"Shift {self.shift_id} end_time {self.end_time} must be after start_time {self.start_time}"
            )

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)


@dataclass(frozen=True)
class TimeEntry:
    """Clocked time against a shift."""

    entry_id: UUID
    shift_id: UUID | None
    officer_id: UUID | None
    clock_in: datetime
    clock_out: datetime | None = None
    total_hours: Decimal = Decimal("0")
    status: TimeEntryStatus = TimeEntryStatus.PENDING

    # Rates captured when the entry was created; kept for audit display
    snapshot_pay_rate: Decimal | None = None
    snapshot_bill_rate: Decimal | None = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None


@dataclass(frozen=True)
class Availability:
    """An officer's declared availability for one day."""

    officer_id: UUID
    day: date
    available: bool
    start: time | None = None
    end: time | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Location:
    """A GPS sample reported by an officer's device."""

    officer_id: UUID
    lat: float
    lng: float
    timestamp: datetime
    accuracy: float | None = None


# ============================================================================
# Derived results
# ============================================================================


@dataclass(frozen=True)
class IntegrityWarning:
    """An input excluded from a computation, with the reason."""

    kind: WarningKind
    message: str
    entry_id: UUID | None = None
    officer_id: UUID | None = None


@dataclass(frozen=True)
class ConflictResult:
    """One advisory scheduling conflict."""

    kind: ConflictKind
    severity: ConflictSeverity
    message: str
    conflicting_shift_id: UUID | None = None


@dataclass(frozen=True)
class WeeklyHours:
    """Hours within one week, split at the weekly threshold."""

    regular: Decimal
    overtime: Decimal
    total: Decimal


@dataclass(frozen=True)
class PayrollEntryDetail:
    """How one time entry contributed to a payroll candidate."""

    entry: TimeEntry
    regular_hours: Decimal
    overtime_hours: Decimal
    pay_rate: Decimal
    overtime_rate: Decimal
    pay: Decimal
    is_custom_rate: bool


@dataclass(frozen=True)
class PayrollCandidate:
    """Computed, not yet committed pay owed to one officer for one period."""

    officer: Officer
    regular_hours: Decimal
    overtime_hours: Decimal
    gross_pay: Decimal
    deductions_total: Decimal
    net_pay: Decimal
    entries: tuple[PayrollEntryDetail, ...]

    @property
    def officer_id(self) -> UUID:
        return self.officer.officer_id

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "officer_id": str(self.officer_id),
            "regular_hours": str(self.regular_hours),
            "overtime_hours": str(self.overtime_hours),
            "gross_pay": str(self.gross_pay),
            "deductions_total": str(self.deductions_total),
            "net_pay": str(self.net_pay),
            "entries": [str(d.entry.entry_id) for d in self.entries],
        }


@dataclass(frozen=True)
class PayrollPreview:
    """Result of aggregating one pay period."""

    period_start: date
    period_end: date
    candidates: tuple[PayrollCandidate, ...]
    warnings: tuple[IntegrityWarning, ...]
    total_amount: Decimal
    fingerprint: str

    @property
    def officer_count(self) -> int:
        return len(self.candidates)

    @property
    def entry_ids(self) -> list[UUID]:
        return [d.entry.entry_id for c in self.candidates for d in c.entries]


@dataclass(frozen=True)
class InvoiceLineItem:
    """Hours billed at one effective rate."""

    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal
    entry_ids: tuple[UUID, ...] = ()

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing and storage."""
        return {
            "description": self.description,
            "quantity": str(self.quantity),
            "rate": str(self.rate),
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class InvoicePreview:
    """Uncommitted invoice for one client."""

    client_id: UUID
    line_items: tuple[InvoiceLineItem, ...]
    total_amount: Decimal
    warnings: tuple[IntegrityWarning, ...]
    fingerprint: str

    @property
    def entry_ids(self) -> list[UUID]:
        return [eid for item in self.line_items for eid in item.entry_ids]

    @property
    def is_empty(self) -> bool:
        return not self.line_items


@dataclass(frozen=True)
class GeofenceEvent:
    """A boundary crossing. Only produced on a state change."""

    officer_id: UUID
    site_id: UUID
    event_type: GeofenceEventType
    lat: float
    lng: float
    distance_from_center: int  # meters, rounded
    timestamp: datetime
    acknowledged: bool = False


@dataclass(frozen=True)
class AuditRecord:
    """Structured record of a committed mutation."""

    action: str
    description: str
    actor: str
    target_resource: str
    target_id: UUID | None
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
