"""Client and site records."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.calculators import types
from workforce_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from workforce_engine.models.accounting import Invoice
    from workforce_engine.models.scheduling import Shift


class Client(Base, TimestampMixin):
    """Client with billing rates."""

    __tablename__ = "client"

    client_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    standard_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    holiday_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    emergency_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Relationships
    sites: Mapped[list[Site]] = relationship(back_populates="client")
    invoices: Mapped[list[Invoice]] = relationship(back_populates="client")

    def to_snapshot(self) -> types.Client:
        return types.Client(
            client_id=self.client_id,
            name=self.name,
            billing_settings=types.BillingSettings(
                standard_rate=self.standard_rate,
                holiday_rate=self.holiday_rate,
                emergency_rate=self.emergency_rate,
            ),
        )


class Site(Base, TimestampMixin):
    """Guarded location with a circular geofence."""

    __tablename__ = "site"
    __table_args__ = (
        CheckConstraint("radius > 0", name="site_radius_positive"),
    )

    site_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    client_id: Mapped[UUID] = mapped_column(
        ForeignKey("client.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    radius: Mapped[float] = mapped_column(Float, nullable=False, default=200.0)  # meters

    # Relationships
    client: Mapped[Client] = relationship(back_populates="sites")
    shifts: Mapped[list[Shift]] = relationship(back_populates="site")

    def to_snapshot(self) -> types.Site:
        return types.Site(
            site_id=self.site_id,
            client_id=self.client_id,
            lat=self.lat,
            lng=self.lng,
            radius=self.radius,
            name=self.name,
        )
