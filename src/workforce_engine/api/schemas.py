"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from workforce_engine.calculators.types import (
    ConflictKind,
    ConflictSeverity,
    GeofenceEventType,
    PayrollCandidate,
    PayrollEntryDetail,
    PayrollPreview,
    ShiftStatus,
    WarningKind,
)
from workforce_engine.services.state_machine import InvoiceStatus


# ============================================================================
# Shared schemas
# ============================================================================


class WarningResponse(BaseModel):
    """An input excluded from a preview, with the reason."""

    model_config = ConfigDict(from_attributes=True)

    kind: WarningKind
    message: str
    entry_id: UUID | None = None
    officer_id: UUID | None = None


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    retryable: bool = False


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollEntryResponse(BaseModel):
    """One time entry's contribution to a candidate."""

    entry_id: UUID
    shift_id: UUID | None
    clock_in: datetime
    clock_out: datetime | None
    regular_hours: Decimal
    overtime_hours: Decimal
    pay_rate: Decimal
    overtime_rate: Decimal
    pay: Decimal
    is_custom_rate: bool

    @classmethod
    def from_detail(cls, detail: PayrollEntryDetail) -> "PayrollEntryResponse":
        return cls(
            entry_id=detail.entry.entry_id,
            shift_id=detail.entry.shift_id,
            clock_in=detail.entry.clock_in,
            clock_out=detail.entry.clock_out,
            regular_hours=detail.regular_hours,
            overtime_hours=detail.overtime_hours,
            pay_rate=detail.pay_rate,
            overtime_rate=detail.overtime_rate,
            pay=detail.pay,
            is_custom_rate=detail.is_custom_rate,
        )


class PayrollCandidateResponse(BaseModel):
    """Pay owed to one officer for the period."""

    officer_id: UUID
    full_name: str
    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    gross_pay: Decimal
    deductions_total: Decimal
    net_pay: Decimal
    entries: list[PayrollEntryResponse]

    @classmethod
    def from_candidate(cls, candidate: PayrollCandidate) -> "PayrollCandidateResponse":
        return cls(
            officer_id=candidate.officer_id,
            full_name=candidate.officer.full_name,
            regular_hours=candidate.regular_hours,
            overtime_hours=candidate.overtime_hours,
            total_hours=candidate.total_hours,
            gross_pay=candidate.gross_pay,
            deductions_total=candidate.deductions_total,
            net_pay=candidate.net_pay,
            entries=[PayrollEntryResponse.from_detail(d) for d in candidate.entries],
        )


class PayrollPreviewResponse(BaseModel):
    """Schema for payroll preview response."""

    period_start: date
    period_end: date
    candidates: list[PayrollCandidateResponse]
    warnings: list[WarningResponse]
    total_amount: Decimal
    officer_count: int
    fingerprint: str

    @classmethod
    def from_preview(cls, preview: PayrollPreview) -> "PayrollPreviewResponse":
        return cls(
            period_start=preview.period_start,
            period_end=preview.period_end,
            candidates=[PayrollCandidateResponse.from_candidate(c) for c in preview.candidates],
            warnings=[WarningResponse.model_validate(w) for w in preview.warnings],
            total_amount=preview.total_amount,
            officer_count=preview.officer_count,
            fingerprint=preview.fingerprint,
        )


class PayrollRunCreate(BaseModel):
    """Schema for confirming a payroll period."""

    period_start: date
    period_end: date
    expected_fingerprint: str | None = None


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_run_id: UUID
    period_start: date
    period_end: date
    total_amount: Decimal
    officer_count: int
    status: str
    processed_at: datetime
    processed_by: str
    fingerprint: str


# ============================================================================
# Invoice schemas
# ============================================================================


class InvoiceLineItemResponse(BaseModel):
    """Hours billed at one rate."""

    model_config = ConfigDict(from_attributes=True)

    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal
    entry_ids: list[UUID] = Field(default_factory=list)


class InvoicePreviewResponse(BaseModel):
    """Schema for invoice preview response."""

    model_config = ConfigDict(from_attributes=True)

    client_id: UUID
    line_items: list[InvoiceLineItemResponse]
    total_amount: Decimal
    warnings: list[WarningResponse]
    fingerprint: str


class InvoiceCreate(BaseModel):
    """Schema for confirming an invoice."""

    expected_fingerprint: str | None = None
    invoice_number: str | None = None
    issue_date: date | None = None


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""

    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    client_id: UUID
    invoice_number: str
    issue_date: date
    due_date: date
    amount: Decimal
    status: str
    items: list[dict[str, Any]]
    fingerprint: str
    created_by: str


class InvoiceStatusUpdate(BaseModel):
    """Schema for moving an invoice along its lifecycle."""

    status: InvoiceStatus


# ============================================================================
# Shift schemas
# ============================================================================


class ConflictResponse(BaseModel):
    """One advisory conflict."""

    model_config = ConfigDict(from_attributes=True)

    kind: ConflictKind
    severity: ConflictSeverity
    message: str
    conflicting_shift_id: UUID | None = None


class ConflictCheckResponse(BaseModel):
    """Schema for a prospective assignment check."""

    shift_id: UUID
    officer_id: UUID
    conflict: ConflictKind | None
    conflicts: list[ConflictResponse]


class AssignmentRequest(BaseModel):
    """Schema for assigning an officer; null unassigns."""

    officer_id: UUID | None = None


class AssignmentResponse(BaseModel):
    """Schema for a committed assignment."""

    model_config = ConfigDict(from_attributes=True)

    shift_id: UUID
    officer_id: UUID | None
    status: ShiftStatus
    version: int
    conflict: ConflictKind | None
    conflicts: list[ConflictResponse]
    warnings: list[str]
    attempts: int


class CompleteExpiredRequest(BaseModel):
    """Schema for the completion sweep. ``as_of`` defaults to now."""

    as_of: datetime | None = None


class CompleteExpiredResponse(BaseModel):
    """Schema for the completion sweep result."""

    completed: int
    as_of: datetime


# ============================================================================
# Geofence schemas
# ============================================================================


class LocationSample(BaseModel):
    """A GPS sample to evaluate against a site."""

    officer_id: UUID
    site_id: UUID
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    timestamp: datetime
    accuracy: float | None = Field(default=None, ge=0)


class GeofenceEventResponse(BaseModel):
    """Schema for a recorded boundary crossing."""

    model_config = ConfigDict(from_attributes=True)

    officer_id: UUID
    site_id: UUID
    event_type: GeofenceEventType
    lat: float
    lng: float
    distance_from_center: int
    timestamp: datetime
    acknowledged: bool


class LocationResponse(BaseModel):
    """Schema for a location evaluation."""

    transitioned: bool
    event: GeofenceEventResponse | None = None
