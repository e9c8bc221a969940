"""Scheduling conflict detection for officer assignments.

Every result here is advisory. Dispatchers may double-book on purpose
(handover overlaps), so callers surface the classification and still let
the assignment through.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from workforce_engine.calculators.timekeeping import (
    ZERO,
    calculate_weekly_hours,
    interval_hours,
    week_bounds,
)
from workforce_engine.calculators.types import (
    Availability,
    ConflictKind,
    ConflictResult,
    ConflictSeverity,
    EmploymentStatus,
    Interval,
    Officer,
    Shift,
    ShiftStatus,
)


def _fmt_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def _fmt_hours(hours: Decimal) -> str:
    return f"{hours:.1f}"


class ConflictDetector:
    """Checks shift intervals against an officer's other open shifts."""

    def __init__(
        self,
        min_rest_hours: Decimal = Decimal("8"),
        max_weekly_hours: Decimal = Decimal("40"),
    ):
        self.min_rest_hours = min_rest_hours
        self.max_weekly_hours = max_weekly_hours

    @staticmethod
    def officer_shifts(
        officer_id: UUID,
        shifts: Iterable[Shift],
        exclude_shift_id: UUID | None = None,
        include_completed: bool = False,
    ) -> list[Shift]:
        """The officer's other shifts; completed ones only when asked for."""
        return [
            s for s in shifts
            if s.officer_id == officer_id
            and s.shift_id != exclude_shift_id
            and (include_completed or s.status != ShiftStatus.COMPLETED)
        ]

    def find_conflict(
        self,
        candidate: Interval,
        officer_id: UUID,
        shifts: Iterable[Shift],
        exclude_shift_id: UUID | None = None,
    ) -> ConflictKind | None:
        """Return DOUBLE_BOOKED if the interval overlaps another open shift.

        Intervals are half-open, so a shift ending at 17:00 and one starting
        at 17:00 do not conflict.
        """
        for shift in self.officer_shifts(officer_id, shifts, exclude_shift_id):
            if candidate.overlaps(shift.interval):
                return ConflictKind.DOUBLE_BOOKED
        return None

    def detect_conflicts(
        self,
        shift: Shift,
        officer_id: UUID,
        shifts: Sequence[Shift],
        availability: Iterable[Availability] = (),
    ) -> list[ConflictResult]:
        """All advisory conflicts for placing ``officer_id`` on ``shift``.

        Checks, in order: overlapping shifts, short rest between shifts,
        declared unavailability, projected weekly hours.
        """
        conflicts: list[ConflictResult] = []
        candidate = shift.interval
        open_shifts = self.officer_shifts(officer_id, shifts, shift.shift_id)
        # Hours already worked this week still count for rest and weekly totals
        others = self.officer_shifts(officer_id, shifts, shift.shift_id, include_completed=True)

        # 1. Overlaps
        for other in open_shifts:
            if candidate.overlaps(other.interval):
                conflicts.append(
                    ConflictResult(
                        kind=ConflictKind.DOUBLE_BOOKED,
                        severity=ConflictSeverity.ERROR,
                        message=(
                            "Officer is already scheduled for a shift from "
                            f"{_fmt_time(other.start_time)} to {_fmt_time(other.end_time)}"
                        ),
                        conflicting_shift_id=other.shift_id,
                    )
                )

        # 2. Rest period on either side
        for other in others:
            rest_after = interval_hours(other.end_time, shift.start_time)
            if ZERO < rest_after < self.min_rest_hours:
                conflicts.append(
                    ConflictResult(
                        kind=ConflictKind.REST_PERIOD,
                        severity=ConflictSeverity.WARNING,
                        message=(
                            f"Only {_fmt_hours(rest_after)} hours of rest between shifts "
                            f"(minimum {_fmt_hours(self.min_rest_hours)}hrs required)"
                        ),
                        conflicting_shift_id=other.shift_id,
                    )
                )
            rest_before = interval_hours(shift.end_time, other.start_time)
            if ZERO < rest_before < self.min_rest_hours:
                conflicts.append(
                    ConflictResult(
                        kind=ConflictKind.REST_PERIOD,
                        severity=ConflictSeverity.WARNING,
                        message=(
                            f"Only {_fmt_hours(rest_before)} hours of rest before next shift "
                            f"(minimum {_fmt_hours(self.min_rest_hours)}hrs required)"
                        ),
                        conflicting_shift_id=other.shift_id,
                    )
                )

        # 3. Availability
        conflicts.extend(self._availability_conflicts(shift, officer_id, availability))

        # 4. Weekly hours projection
        week_start, _ = week_bounds(shift.start_time)
        existing = calculate_weekly_hours(others, week_start, self.max_weekly_hours).total
        projected = existing + interval_hours(shift.start_time, shift.end_time)
        if projected > self.max_weekly_hours:
            conflicts.append(
                ConflictResult(
                    kind=ConflictKind.WEEKLY_OVERTIME,
                    severity=ConflictSeverity.WARNING,
                    message=(
                        f"This shift will result in {_fmt_hours(projected)} weekly hours "
                        f"({_fmt_hours(projected - self.max_weekly_hours)}hrs overtime)"
                    ),
                )
            )

        return conflicts

    @staticmethod
    def _availability_conflicts(
        shift: Shift,
        officer_id: UUID,
        availability: Iterable[Availability],
    ) -> list[ConflictResult]:
        shift_day = shift.start_time.date()
        day = next(
            (a for a in availability if a.officer_id == officer_id and a.day == shift_day),
            None,
        )
        if day is None:
            return []

        if not day.available:
            suffix = f": {day.notes}" if day.notes else ""
            return [
                ConflictResult(
                    kind=ConflictKind.AVAILABILITY,
                    severity=ConflictSeverity.WARNING,
                    message=f"Officer marked as unavailable on {shift_day.isoformat()}{suffix}",
                )
            ]

        if day.start is not None and day.end is not None:
            starts = shift.start_time.time()
            ends = shift.end_time.time()
            crosses_day = shift.end_time.date() != shift_day
            if starts < day.start or ends > day.end or crosses_day:
                return [
                    ConflictResult(
                        kind=ConflictKind.AVAILABILITY,
                        severity=ConflictSeverity.WARNING,
                        message=(
                            f"Shift time ({_fmt_time(shift.start_time)}-{_fmt_time(shift.end_time)}) "
                            "falls outside officer's available hours "
                            f"({day.start.strftime('%H:%M')}-{day.end.strftime('%H:%M')})"
                        ),
                    )
                ]
        return []

    def rank_available_officers(
        self,
        shift: Shift,
        officers: Iterable[Officer],
        shifts: Sequence[Shift],
    ) -> list[Officer]:
        """Active officers free for ``shift``, fewest scheduled hours that week first."""
        week_start, _ = week_bounds(shift.start_time)
        ranked: list[tuple[Decimal, str, Officer]] = []
        for officer in officers:
            if officer.employment_status != EmploymentStatus.ACTIVE:
                continue
            if self.find_conflict(shift.interval, officer.officer_id, shifts, shift.shift_id):
                continue
            own = self.officer_shifts(
                officer.officer_id, shifts, shift.shift_id, include_completed=True
            )
            weekly = calculate_weekly_hours(own, week_start, self.max_weekly_hours).total
            ranked.append((weekly, str(officer.officer_id), officer))
        ranked.sort(key=lambda item: (item[0], item[1]))
        return [officer for _, _, officer in ranked]
