"""Workforce engine services."""

from workforce_engine.services.audit import SessionAuditSink, build_record, emit_audit
from workforce_engine.services.billing_service import BillingService
from workforce_engine.services.geofence_service import GeofenceService
from workforce_engine.services.locking_service import LockingService
from workforce_engine.services.payroll_service import PayrollService
from workforce_engine.services.shift_service import AssignmentResult, ShiftService
from workforce_engine.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
    PayrollRunStatus,
    ShiftStateMachine,
)

__all__ = [
    "AssignmentResult",
    "BillingService",
    "GeofenceService",
    "InvalidTransitionError",
    "InvoiceStateMachine",
    "InvoiceStatus",
    "LockingService",
    "PayrollRunStatus",
    "PayrollService",
    "SessionAuditSink",
    "ShiftService",
    "ShiftStateMachine",
    "build_record",
    "emit_audit",
]
