"""Shift assignment, completion sweep and clock-out.

Assignments use optimistic concurrency on ``Shift.version``: the write is
conditioned on the version that was read, and a lost race re-reads and
recomputes before trying again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.conflict_detector import ConflictDetector
from workforce_engine.calculators.timekeeping import compute_total_hours, expired_shifts, week_bounds
from workforce_engine.calculators.types import ConflictKind, ConflictResult, ShiftStatus
from workforce_engine.config import Settings, get_settings
from workforce_engine.exceptions import ConcurrentModificationError, RecordNotFoundError
from workforce_engine.models import Officer, Shift, TimeEntry
from workforce_engine.services.audit import AuditCallback, build_record, emit_audit
from workforce_engine.services.state_machine import InvalidTransitionError, ShiftStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of a committed assignment.

    ``conflict`` is the advisory classification; the assignment was written
    regardless.
    """

    shift_id: UUID
    officer_id: UUID | None
    status: ShiftStatus
    version: int
    conflict: ConflictKind | None = None
    conflicts: tuple[ConflictResult, ...] = field(default_factory=tuple)
    attempts: int = 1

    @property
    def warnings(self) -> list[str]:
        return [c.message for c in self.conflicts]


class ShiftService:
    """Service for shift assignment and lifecycle writes."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        detector: ConflictDetector | None = None,
        audit: AuditCallback | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.detector = detector or ConflictDetector(
            min_rest_hours=self.settings.min_rest_hours,
            max_weekly_hours=self.settings.weekly_overtime_threshold,
        )
        self.audit = audit
        self.max_attempts = max(1, self.settings.max_assignment_attempts)

    async def assign_officer(
        self,
        shift_id: UUID,
        officer_id: UUID | None,
        actor: str,
    ) -> AssignmentResult:
        """Assign (or with ``officer_id=None`` unassign) an officer.

        Raises:
            RecordNotFoundError: If the shift or officer does not exist
            InvalidTransitionError: If the shift is completed
            ConcurrentModificationError: If every attempt lost the version race
        """
        if officer_id is not None:
            await self._require_officer(officer_id)

        for attempt in range(1, self.max_attempts + 1):
            shift = await self._read_shift(shift_id)
            target_status = ShiftStateMachine.status_for_assignment(
                shift.status, assigning=officer_id is not None
            )

            conflicts: list[ConflictResult] = []
            if officer_id is not None:
                conflicts = await self._detect(shift, officer_id)

            written = await self._write_assignment(shift_id, shift.version, officer_id, target_status)
            if not written:
                logger.warning(
                    "Shift %s changed while assigning (attempt %d of %d)",
                    shift_id,
                    attempt,
                    self.max_attempts,
                )
                continue

            conflict = next(
                (c.kind for c in conflicts if c.kind == ConflictKind.DOUBLE_BOOKED),
                None,
            )
            result = AssignmentResult(
                shift_id=shift_id,
                officer_id=officer_id,
                status=ShiftStatus(target_status),
                version=shift.version + 1,
                conflict=conflict,
                conflicts=tuple(conflicts),
                attempts=attempt,
            )
            if conflict is not None:
                logger.info("Shift %s assigned with conflict %s", shift_id, conflict.value)

            emit_audit(
                self.audit,
                build_record(
                    action="assign" if officer_id is not None else "unassign",
                    description=(
                        f"Assigned officer {officer_id} to shift"
                        if officer_id is not None
                        else "Unassigned officer from shift"
                    ),
                    actor=actor,
                    target_resource="Shift",
                    target_id=shift_id,
                    metadata={
                        "previous_officer_id": str(shift.officer_id) if shift.officer_id else None,
                        "status": target_status,
                        "conflict": conflict.value if conflict else None,
                        "warnings": result.warnings,
                    },
                ),
            )
            return result

        raise ConcurrentModificationError("shift", shift_id, self.max_attempts)

    async def check_conflicts(self, shift_id: UUID, officer_id: UUID) -> list[ConflictResult]:
        """Advisory conflicts for a prospective assignment. Writes nothing."""
        await self._require_officer(officer_id)
        shift = await self._read_shift(shift_id)
        return await self._detect(shift, officer_id)

    async def complete_expired_shifts(self, as_of: datetime) -> int:
        """Mark every non-completed shift that ended at or before ``as_of`` completed."""
        result = await self.session.execute(
            select(Shift).where(
                Shift.status != ShiftStatus.COMPLETED.value,
                Shift.end_time <= as_of,
            )
        )
        expired = expired_shifts([row.to_snapshot() for row in result.scalars().all()], as_of)
        if not expired:
            return 0

        updated = await self.session.execute(
            update(Shift)
            .where(
                Shift.shift_id.in_([s.shift_id for s in expired]),
                Shift.status != ShiftStatus.COMPLETED.value,
            )
            .values(status=ShiftStatus.COMPLETED.value, version=Shift.version + 1)
            .execution_options(synchronize_session=False)
        )
        count = updated.rowcount or 0
        logger.info("Completed %d expired shifts as of %s", count, as_of.isoformat())
        return count

    async def close_time_entry(self, entry_id: UUID, clock_out: datetime) -> TimeEntry:
        """Clock out an open entry and complete its shift.

        Raises:
            RecordNotFoundError: If the entry does not exist
            InvalidTransitionError: If the entry is already clocked out
        """
        entry = await self.session.get(TimeEntry, entry_id, populate_existing=True)
        if entry is None:
            raise RecordNotFoundError("time entry", entry_id)
        if entry.clock_out is not None:
            raise InvalidTransitionError("closed", "closed", "time entry is already clocked out")

        break_minutes = 0
        shift = None
        if entry.shift_id is not None:
            shift = await self.session.get(Shift, entry.shift_id, populate_existing=True)
        if shift is not None:
            break_minutes = shift.break_duration or 0

        entry.clock_out = clock_out
        entry.total_hours = compute_total_hours(entry.clock_in, clock_out, break_minutes)

        if shift is not None and ShiftStateMachine.can_transition(
            shift.status, ShiftStatus.COMPLETED.value
        ):
            await self.session.execute(
                update(Shift)
                .where(
                    Shift.shift_id == shift.shift_id,
                    Shift.status != ShiftStatus.COMPLETED.value,
                )
                .values(status=ShiftStatus.COMPLETED.value, version=Shift.version + 1)
                .execution_options(synchronize_session=False)
            )
        await self.session.flush()

        logger.info("Time entry %s closed with %s hours", entry_id, entry.total_hours)
        return entry

    async def _read_shift(self, shift_id: UUID) -> Shift:
        shift = await self.session.get(Shift, shift_id, populate_existing=True)
        if shift is None:
            raise RecordNotFoundError("shift", shift_id)
        return shift

    async def _require_officer(self, officer_id: UUID) -> None:
        found = await self.session.scalar(
            select(Officer.officer_id).where(Officer.officer_id == officer_id)
        )
        if found is None:
            raise RecordNotFoundError("officer", officer_id)

    async def _detect(self, shift: Shift, officer_id: UUID) -> list[ConflictResult]:
        # The week feeds the hours projection; the rest margin may reach past it
        week_start, week_end = week_bounds(shift.start_time)
        rest = timedelta(hours=float(self.detector.min_rest_hours))
        result = await self.session.execute(
            select(Shift).where(
                Shift.officer_id == officer_id,
                Shift.shift_id != shift.shift_id,
                Shift.end_time > min(week_start, shift.start_time - rest),
                Shift.start_time < max(week_end, shift.end_time + rest),
            )
        )
        others = [row.to_snapshot() for row in result.scalars().all()]
        return self.detector.detect_conflicts(shift.to_snapshot(), officer_id, others)

    async def _write_assignment(
        self,
        shift_id: UUID,
        read_version: int,
        officer_id: UUID | None,
        status: str,
    ) -> bool:
        result = await self.session.execute(
            update(Shift)
            .where(Shift.shift_id == shift_id, Shift.version == read_version)
            .values(officer_id=officer_id, status=status, version=Shift.version + 1)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1
