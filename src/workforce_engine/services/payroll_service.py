"""Payroll preview and confirmation against the store."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.payroll_aggregator import PayrollAggregator
from workforce_engine.calculators.rate_resolver import RateResolver
from workforce_engine.calculators.types import PayrollPreview
from workforce_engine.config import Settings, get_settings
from workforce_engine.exceptions import (
    DuplicateCommitError,
    EmptyPeriodError,
    PreviewMismatchError,
)
from workforce_engine.models import Officer, PayrollRun, Shift, TimeEntry
from workforce_engine.services.audit import AuditCallback, build_record, emit_audit
from workforce_engine.services.locking_service import LockingService
from workforce_engine.services.state_machine import PayrollRunStatus

logger = logging.getLogger(__name__)


class PayrollService:
    """Computes payroll previews and commits confirmed payroll runs.

    Period days are evaluated in UTC, the timezone entries are stored in.
    Entries already attached to a payroll run are not offered again.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        audit: AuditCallback | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.audit = audit
        self.aggregator = PayrollAggregator(
            RateResolver.from_settings(self.settings),
            overtime_threshold_hours=self.settings.daily_overtime_threshold,
        )
        self.locking = LockingService(session)

    async def preview(self, period_start: date, period_end: date) -> PayrollPreview:
        """Aggregate unclaimed approved entries for the period. Writes nothing."""
        window_start = datetime.combine(period_start, time.min, tzinfo=timezone.utc)
        window_end = datetime.combine(period_end + timedelta(days=1), time.min, tzinfo=timezone.utc)

        result = await self.session.execute(
            select(TimeEntry).where(
                TimeEntry.status == "approved",
                TimeEntry.payroll_run_id.is_(None),
                TimeEntry.clock_in >= window_start,
                TimeEntry.clock_in < window_end,
            )
        )
        entries = [row.to_snapshot() for row in result.scalars().all()]

        shift_ids = {e.shift_id for e in entries if e.shift_id is not None}
        officer_ids = {e.officer_id for e in entries if e.officer_id is not None}
        shifts = await self._load_shifts(shift_ids)
        officers = await self._load_officers(officer_ids)

        return self.aggregator.aggregate(period_start, period_end, entries, shifts, officers)

    async def confirm(
        self,
        period_start: date,
        period_end: date,
        actor: str,
        expected_fingerprint: str | None = None,
        status: PayrollRunStatus = PayrollRunStatus.PAID,
        processed_at: datetime | None = None,
    ) -> PayrollRun:
        """Commit the period's payroll as one new PayrollRun.

        Run insert and entry claims share the caller's transaction.

        Raises:
            DuplicateCommitError: If a run already exists or entries were claimed
            PreviewMismatchError: If the data changed since the reviewed preview
            EmptyPeriodError: If there is nothing to pay
        """
        existing = await self.session.scalar(
            select(PayrollRun.payroll_run_id).where(
                PayrollRun.period_start == period_start,
                PayrollRun.period_end == period_end,
                PayrollRun.status == status.value,
            )
        )
        if existing is not None:
            raise DuplicateCommitError(
                "payroll run",
                f"run {existing} already covers {period_start}..{period_end} ({status.value})",
            )

        preview = await self.preview(period_start, period_end)
        if expected_fingerprint is not None and expected_fingerprint != preview.fingerprint:
            raise PreviewMismatchError("payroll", expected_fingerprint, preview.fingerprint)
        if not preview.candidates:
            raise EmptyPeriodError("payroll run", period_start, period_end)

        run = PayrollRun(
            period_start=period_start,
            period_end=period_end,
            total_amount=preview.total_amount,
            officer_count=preview.officer_count,
            status=status.value,
            processed_at=processed_at or datetime.now(timezone.utc),
            processed_by=actor,
            fingerprint=preview.fingerprint,
        )
        self.session.add(run)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateCommitError(
                "payroll run",
                f"a concurrent confirmation already covers {period_start}..{period_end}",
            ) from exc

        await self.locking.claim_for_payroll_run(preview.entry_ids, run.payroll_run_id)

        logger.info(
            "Payroll run %s committed: %d officers, total %s",
            run.payroll_run_id,
            run.officer_count,
            run.total_amount,
        )
        emit_audit(
            self.audit,
            build_record(
                action="process",
                description=(
                    f"Processed Payroll for {run.officer_count} officers. "
                    f"Total: ${run.total_amount:.2f}"
                ),
                actor=actor,
                target_resource="Payroll",
                target_id=run.payroll_run_id,
                metadata={
                    "period_start": period_start.isoformat(),
                    "period_end": period_end.isoformat(),
                    "fingerprint": preview.fingerprint,
                    "warnings": len(preview.warnings),
                },
            ),
        )
        return run

    async def _load_shifts(self, shift_ids: set[UUID]):
        if not shift_ids:
            return {}
        result = await self.session.execute(select(Shift).where(Shift.shift_id.in_(shift_ids)))
        return {row.shift_id: row.to_snapshot() for row in result.scalars().all()}

    async def _load_officers(self, officer_ids: set[UUID]):
        if not officer_ids:
            return {}
        result = await self.session.execute(
            select(Officer).where(Officer.officer_id.in_(officer_ids))
        )
        return {row.officer_id: row.to_snapshot() for row in result.scalars().all()}
