"""Schema sanity checks.

Validates that the tables and the constraints the services rely on exist.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.models import PayrollRun, Shift

EXPECTED_TABLES = {
    "officer",
    "client",
    "site",
    "shift",
    "time_entry",
    "payroll_run",
    "invoice",
    "geofence_event",
    "audit_log",
}


def _run(status: str, fingerprint: str, at) -> PayrollRun:
    return PayrollRun(
        period_start=date(2024, 3, 3),
        period_end=date(2024, 3, 16),
        total_amount=Decimal("0"),
        officer_count=0,
        status=status,
        processed_at=at(12),
        processed_by="payroll",
        fingerprint=fingerprint,
    )


class TestTables:
    """Test that every table is created."""

    async def test_all_tables_exist(self, db_session: AsyncSession):
        result = await db_session.execute(
            text("SELECT name FROM sqlite_master WHERE type = 'table'")
        )
        assert EXPECTED_TABLES <= set(result.scalars().all())


class TestConstraints:
    """Test the constraints backing duplicate detection and data validity."""

    async def test_one_payroll_run_per_period_and_status(self, db_session: AsyncSession, at):
        """A second run for the same period and status is rejected by the store."""
        db_session.add(_run("paid", "a" * 32, at))
        await db_session.flush()

        db_session.add(_run("paid", "b" * 32, at))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    async def test_draft_and_paid_runs_may_share_a_period(self, db_session: AsyncSession, at):
        db_session.add_all([_run("paid", "a" * 32, at), _run("draft", "b" * 32, at)])
        await db_session.flush()

    async def test_shift_must_end_after_it_starts(self, db_session: AsyncSession, seeded, at):
        db_session.add(
            Shift(site_id=seeded["pier"].site_id, start_time=at(17), end_time=at(9), status="published")
        )
        with pytest.raises(IntegrityError):
            await db_session.flush()

    async def test_unknown_shift_status_is_rejected(self, db_session: AsyncSession, seeded, at):
        db_session.add(
            Shift(site_id=seeded["pier"].site_id, start_time=at(9), end_time=at(17), status="cancelled")
        )
        with pytest.raises(IntegrityError):
            await db_session.flush()
