"""Geofence event log and audit log. Rows are appended, never updated."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from workforce_engine.calculators import types
from workforce_engine.models.base import Base, TimestampMixin


class GeofenceEvent(Base, TimestampMixin):
    """Recorded boundary crossing."""

    __tablename__ = "geofence_event"
    __table_args__ = (
        Index("ix_geofence_event_officer_site_ts", "officer_id", "site_id", "timestamp"),
    )

    geofence_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    officer_id: Mapped[UUID] = mapped_column(
        ForeignKey("officer.officer_id", ondelete="CASCADE"),
        nullable=False,
    )
    site_id: Mapped[UUID] = mapped_column(
        ForeignKey("site.site_id", ondelete="CASCADE"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    distance_from_center: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @classmethod
    def from_snapshot(cls, event: types.GeofenceEvent) -> GeofenceEvent:
        return cls(
            officer_id=event.officer_id,
            site_id=event.site_id,
            event_type=event.event_type.value,
            lat=event.lat,
            lng=event.lng,
            distance_from_center=event.distance_from_center,
            timestamp=event.timestamp,
            acknowledged=event.acknowledged,
        )

    @property
    def is_inside(self) -> bool:
        """State after this event."""
        return self.event_type == types.GeofenceEventType.ENTER.value


class AuditLog(Base):
    """Persisted audit record of a committed mutation."""

    __tablename__ = "audit_log"

    audit_log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    action: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    performed_by: Mapped[str] = mapped_column(String, nullable=False)
    target_resource: Mapped[str] = mapped_column(String, nullable=False)
    target_id: Mapped[UUID | None] = mapped_column(nullable=True)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    @classmethod
    def from_record(cls, record: types.AuditRecord) -> AuditLog:
        return cls(
            action=record.action,
            description=record.description,
            performed_by=record.actor,
            target_resource=record.target_resource,
            target_id=record.target_id,
            timestamp=record.timestamp,
            details=dict(record.metadata),
        )
