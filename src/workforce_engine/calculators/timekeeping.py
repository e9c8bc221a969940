"""Hour arithmetic shared by scheduling, payroll and billing."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal

from workforce_engine.calculators.types import Shift, ShiftStatus, WeeklyHours

ZERO = Decimal("0")
SECONDS_PER_HOUR = Decimal("3600")
HOUR_PRECISION = Decimal("0.0001")


def timedelta_hours(delta: timedelta) -> Decimal:
    """Convert a timedelta to exact decimal hours."""
    seconds = Decimal(delta.days * 86400 + delta.seconds) + Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / SECONDS_PER_HOUR


def interval_hours(start: datetime, end: datetime) -> Decimal:
    return timedelta_hours(end - start)


def compute_total_hours(
    clock_in: datetime,
    clock_out: datetime,
    break_minutes: int = 0,
) -> Decimal:
    """Worked hours for a closed entry: elapsed time less the unpaid break.

    Never negative; a break longer than the elapsed time yields 0.
    """
    hours = interval_hours(clock_in, clock_out) - Decimal(break_minutes) / Decimal(60)
    return max(ZERO, hours).quantize(HOUR_PRECISION)


def split_overtime(hours: Decimal, threshold: Decimal) -> tuple[Decimal, Decimal]:
    """Split hours into (regular, overtime) at the threshold."""
    regular = min(hours, threshold)
    overtime = max(ZERO, hours - threshold)
    return regular, overtime


def week_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Sunday-00:00 start and exclusive end of the week containing ``moment``."""
    days_since_sunday = (moment.weekday() + 1) % 7
    start = (moment - timedelta(days=days_since_sunday)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return start, start + timedelta(days=7)


def calculate_weekly_hours(
    shifts: Iterable[Shift],
    week_start: datetime,
    threshold: Decimal = Decimal("40"),
) -> WeeklyHours:
    """Scheduled hours for shifts starting within the week, split at the threshold."""
    start, end = week_bounds(week_start)
    total = sum(
        (
            interval_hours(s.start_time, s.end_time)
            for s in shifts
            if start <= s.start_time < end
        ),
        ZERO,
    )
    regular, overtime = split_overtime(total, threshold)
    return WeeklyHours(regular=regular, overtime=overtime, total=total)


def is_shift_completed(shift: Shift, as_of: datetime) -> bool:
    """A shift is completed once marked so, or once its end time has passed."""
    return shift.status == ShiftStatus.COMPLETED or shift.end_time <= as_of


def expired_shifts(shifts: Iterable[Shift], as_of: datetime) -> list[Shift]:
    """Shifts not yet marked completed whose end time is at or before ``as_of``."""
    return [
        s for s in shifts
        if s.status != ShiftStatus.COMPLETED and s.end_time <= as_of
    ]
