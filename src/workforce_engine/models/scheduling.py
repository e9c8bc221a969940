"""Shift and time entry records."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.calculators import types
from workforce_engine.models.base import Base, Hours, TimestampMixin

if TYPE_CHECKING:
    from workforce_engine.models.clients import Site
    from workforce_engine.models.personnel import Officer


class Shift(Base, TimestampMixin):
    """Scheduled work interval at a site.

    ``version`` is bumped on every assignment write; writers condition their
    UPDATE on the version they read.
    """

    __tablename__ = "shift"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="shift_end_after_start"),
        CheckConstraint(
            "status IN ('draft', 'published', 'assigned', 'completed')",
            name="shift_status_check",
        ),
        Index("ix_shift_officer_start", "officer_id", "start_time"),
    )

    shift_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    site_id: Mapped[UUID] = mapped_column(
        ForeignKey("site.site_id", ondelete="CASCADE"),
        nullable=False,
    )
    officer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("officer.officer_id", ondelete="SET NULL"),
        nullable=True,
    )
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    pay_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    bill_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    break_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Relationships
    site: Mapped[Site] = relationship(back_populates="shifts")
    officer: Mapped[Officer | None] = relationship(back_populates="shifts")
    time_entries: Mapped[list[TimeEntry]] = relationship(back_populates="shift")

    def to_snapshot(self) -> types.Shift:
        return types.Shift(
            shift_id=self.shift_id,
            site_id=self.site_id,
            start_time=self.start_time,
            end_time=self.end_time,
            officer_id=self.officer_id,
            status=types.ShiftStatus(self.status),
            pay_rate=self.pay_rate,
            bill_rate=self.bill_rate,
            break_duration=self.break_duration or 0,
        )


class TimeEntry(Base, TimestampMixin):
    """Clocked time against a shift.

    ``payroll_run_id`` and ``invoice_id`` are claimed exactly once, when the
    entry is committed into a payroll run or an invoice.
    """

    __tablename__ = "time_entry"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="time_entry_status_check",
        ),
        Index("ix_time_entry_officer_clock_in", "officer_id", "clock_in"),
    )

    time_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    shift_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("shift.shift_id", ondelete="SET NULL"),
        nullable=True,
    )
    officer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("officer.officer_id", ondelete="SET NULL"),
        nullable=True,
    )
    clock_in: Mapped[datetime] = mapped_column(nullable=False)
    clock_out: Mapped[datetime | None] = mapped_column(nullable=True)
    total_hours: Mapped[Decimal] = mapped_column(Hours, nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    # Financial snapshot at creation time
    snapshot_pay_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    snapshot_bill_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Commit claims
    payroll_run_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_run.payroll_run_id"),
        nullable=True,
    )
    invoice_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("invoice.invoice_id"),
        nullable=True,
    )

    # Relationships
    shift: Mapped[Shift | None] = relationship(back_populates="time_entries")
    officer: Mapped[Officer | None] = relationship(back_populates="time_entries")

    @property
    def is_billed(self) -> bool:
        return self.invoice_id is not None

    def to_snapshot(self) -> types.TimeEntry:
        return types.TimeEntry(
            entry_id=self.time_entry_id,
            shift_id=self.shift_id,
            officer_id=self.officer_id,
            clock_in=self.clock_in,
            clock_out=self.clock_out,
            total_hours=Decimal(self.total_hours),
            status=types.TimeEntryStatus(self.status),
            snapshot_pay_rate=self.snapshot_pay_rate,
            snapshot_bill_rate=self.snapshot_bill_rate,
        )
