"""Pytest fixtures for workforce engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from workforce_engine.calculators.rate_resolver import RateResolver
from workforce_engine.calculators.types import (
    BillingSettings,
    Client,
    Deduction,
    EmploymentStatus,
    Financials,
    Officer,
    Shift,
    ShiftStatus,
    TimeEntry,
    TimeEntryStatus,
)

# Sunday 2024-03-03 starts the reference week; 2024-03-04 is a Monday.
REFERENCE_DAY = datetime(2024, 3, 4, tzinfo=timezone.utc)


@pytest.fixture
def at():
    """Build a UTC datetime relative to Monday 2024-03-04."""

    def _at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
        return REFERENCE_DAY + timedelta(days=day_offset, hours=hour, minutes=minute)

    return _at


@pytest.fixture
def make_officer():
    """Factory for officer snapshots."""

    def _make(
        base_rate: str | None = "20.00",
        overtime_rate: str | None = None,
        deductions: tuple[tuple[str, str], ...] = (),
        status: EmploymentStatus = EmploymentStatus.ACTIVE,
        full_name: str = "Jordan Reyes",
        officer_id: UUID | None = None,
    ) -> Officer:
        return Officer(
            officer_id=officer_id or uuid4(),
            full_name=full_name,
            employment_status=status,
            financials=Financials(
                base_rate=Decimal(base_rate) if base_rate is not None else None,
                overtime_rate=Decimal(overtime_rate) if overtime_rate is not None else None,
                deductions=tuple(Deduction(name, Decimal(amount)) for name, amount in deductions),
            ),
        )

    return _make


@pytest.fixture
def make_client():
    """Factory for client snapshots."""

    def _make(standard_rate: str | None = "45.00", name: str = "Harbor Logistics") -> Client:
        return Client(
            client_id=uuid4(),
            name=name,
            billing_settings=BillingSettings(
                standard_rate=Decimal(standard_rate) if standard_rate is not None else None,
            ),
        )

    return _make


@pytest.fixture
def make_shift():
    """Factory for shift snapshots."""

    def _make(
        start: datetime,
        end: datetime,
        officer_id: UUID | None = None,
        status: ShiftStatus = ShiftStatus.ASSIGNED,
        pay_rate: str | None = None,
        bill_rate: str | None = None,
        break_duration: int = 0,
        site_id: UUID | None = None,
    ) -> Shift:
        return Shift(
            shift_id=uuid4(),
            site_id=site_id or uuid4(),
            start_time=start,
            end_time=end,
            officer_id=officer_id,
            status=status,
            pay_rate=Decimal(pay_rate) if pay_rate is not None else None,
            bill_rate=Decimal(bill_rate) if bill_rate is not None else None,
            break_duration=break_duration,
        )

    return _make


@pytest.fixture
def make_entry():
    """Factory for closed time entries of a given length."""

    def _make(
        officer_id: UUID | None,
        clock_in: datetime,
        hours: str,
        shift_id: UUID | None = None,
        status: TimeEntryStatus = TimeEntryStatus.APPROVED,
        open_entry: bool = False,
    ) -> TimeEntry:
        total = Decimal(hours)
        clock_out = None
        if not open_entry:
            clock_out = clock_in + timedelta(hours=max(float(total), 0))
        return TimeEntry(
            entry_id=uuid4(),
            shift_id=shift_id,
            officer_id=officer_id,
            clock_in=clock_in,
            clock_out=clock_out,
            total_hours=total,
            status=status,
        )

    return _make


@pytest.fixture
def resolver() -> RateResolver:
    """Resolver with no configured defaults."""
    return RateResolver()
