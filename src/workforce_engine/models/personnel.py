"""Officer records."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.calculators import types
from workforce_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from workforce_engine.models.scheduling import Shift, TimeEntry


class Officer(Base, TimestampMixin):
    """Security officer with pay configuration."""

    __tablename__ = "officer"
    __table_args__ = (
        CheckConstraint(
            "employment_status IN ('active', 'onboarding', 'terminated')",
            name="officer_employment_status_check",
        ),
        CheckConstraint(
            "overtime_rate IS NULL OR base_rate IS NULL OR overtime_rate >= base_rate",
            name="officer_overtime_rate_check",
        ),
    )

    officer_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    badge_number: Mapped[str | None] = mapped_column(String, nullable=True)
    employment_status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    base_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    overtime_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    # [{"name": "Uniform", "amount": "5.00"}]
    deductions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    shifts: Mapped[list[Shift]] = relationship(back_populates="officer")
    time_entries: Mapped[list[TimeEntry]] = relationship(back_populates="officer")

    def to_snapshot(self) -> types.Officer:
        """Immutable view for the calculators."""
        return types.Officer(
            officer_id=self.officer_id,
            full_name=self.full_name,
            employment_status=types.EmploymentStatus(self.employment_status),
            financials=types.Financials(
                base_rate=self.base_rate,
                overtime_rate=self.overtime_rate,
                deductions=tuple(
                    types.Deduction(name=d["name"], amount=Decimal(str(d["amount"])))
                    for d in (self.deductions or [])
                ),
            ),
        )
