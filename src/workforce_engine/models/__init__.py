"""SQLAlchemy ORM models for the workforce store."""

from workforce_engine.models.accounting import Invoice, PayrollRun
from workforce_engine.models.base import Base, TimestampMixin, UTCDateTime
from workforce_engine.models.clients import Client, Site
from workforce_engine.models.personnel import Officer
from workforce_engine.models.scheduling import Shift, TimeEntry
from workforce_engine.models.tracking import AuditLog, GeofenceEvent

__all__ = [
    "AuditLog",
    "Base",
    "Client",
    "GeofenceEvent",
    "Invoice",
    "Officer",
    "PayrollRun",
    "Shift",
    "Site",
    "TimeEntry",
    "TimestampMixin",
    "UTCDateTime",
]
