"""Payroll run and invoice records. Both are append-only once committed."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from workforce_engine.models.clients import Client


class PayrollRun(Base, TimestampMixin):
    """Confirmed payroll for one period.

    At most one run per (period_start, period_end, status); corrections are
    new runs, never edits.
    """

    __tablename__ = "payroll_run"
    __table_args__ = (
        UniqueConstraint(
            "period_start", "period_end", "status", name="payroll_run_period_status_key"
        ),
        CheckConstraint("period_end >= period_start", name="payroll_run_period_order"),
        CheckConstraint("status IN ('draft', 'paid')", name="payroll_run_status_check"),
    )

    payroll_run_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    officer_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="paid")
    processed_at: Mapped[datetime] = mapped_column(nullable=False)
    processed_by: Mapped[str] = mapped_column(String, nullable=False)
    fingerprint: Mapped[str] = mapped_column(String(32), nullable=False)


class Invoice(Base, TimestampMixin):
    """Invoice sent to a client."""

    __tablename__ = "invoice"
    __table_args__ = (
        UniqueConstraint("invoice_number", name="invoice_number_key"),
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'overdue')",
            name="invoice_status_check",
        ),
    )

    invoice_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    client_id: Mapped[UUID] = mapped_column(
        ForeignKey("client.client_id", ondelete="RESTRICT"),
        nullable=False,
    )
    invoice_number: Mapped[str] = mapped_column(String, nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    # [{"description", "quantity", "rate", "amount"}] as strings
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    fingerprint: Mapped[str] = mapped_column(String(32), nullable=False)
    created_by: Mapped[str] = mapped_column(String, nullable=False)

    # Relationships
    client: Mapped[Client] = relationship(back_populates="invoices")
