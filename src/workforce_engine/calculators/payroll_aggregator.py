"""Payroll aggregation: approved time entries to per-officer candidates."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from workforce_engine.calculators.line_builder import LineItemBuilder
from workforce_engine.calculators.rate_resolver import RateResolver
from workforce_engine.calculators.timekeeping import ZERO, split_overtime
from workforce_engine.calculators.types import (
    IntegrityWarning,
    Officer,
    PayrollCandidate,
    PayrollEntryDetail,
    PayrollPreview,
    Shift,
    TimeEntry,
    TimeEntryStatus,
    WarningKind,
)
from workforce_engine.exceptions import RateNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass
class _OfficerAccumulator:
    """Running totals for one officer while folding entries."""

    officer: Officer
    regular: Decimal = ZERO
    overtime: Decimal = ZERO
    gross: Decimal = ZERO
    details: list[PayrollEntryDetail] = field(default_factory=list)

    def add(self, detail: PayrollEntryDetail) -> None:
        self.regular += detail.regular_hours
        self.overtime += detail.overtime_hours
        self.gross += detail.pay
        self.details.append(detail)

    def finish(self) -> PayrollCandidate:
        gross = LineItemBuilder.round_to_cents(self.gross)
        financials = self.officer.financials
        deductions = LineItemBuilder.round_to_cents(
            financials.deductions_total if financials else ZERO
        )
        return PayrollCandidate(
            officer=self.officer,
            regular_hours=self.regular,
            overtime_hours=self.overtime,
            gross_pay=gross,
            deductions_total=deductions,
            net_pay=max(ZERO, gross - deductions),
            entries=tuple(sorted(self.details, key=lambda d: d.entry.clock_in)),
        )


class PayrollAggregator:
    """Builds payroll candidates for a pay period.

    Pipeline (stable order):
    1) Keep approved entries clocked in within [period_start, period_end],
       both ends inclusive of the whole day
    2) Exclude entries with integrity problems, reporting each as a warning
    3) Split each entry at the per-entry overtime threshold
    4) Price regular and overtime hours with the resolved rates
    5) Per officer: apply flat deductions once, floor net pay at zero

    Overtime is computed per time entry, not per calendar day or week: two
    6h entries on the same day earn no overtime.
    """

    def __init__(
        self,
        rate_resolver: RateResolver,
        overtime_threshold_hours: Decimal = Decimal("8"),
    ):
        self.rate_resolver = rate_resolver
        self.overtime_threshold_hours = overtime_threshold_hours

    @staticmethod
    def in_period(entry: TimeEntry, period_start: date, period_end: date) -> bool:
        """True when the entry clocked in on a day within the closed period."""
        return period_start <= entry.clock_in.date() <= period_end

    def price_entry(
        self,
        entry: TimeEntry,
        shift: Shift | None,
        officer: Officer,
    ) -> PayrollEntryDetail:
        """Split and price a single entry.

        Raises:
            RateNotConfiguredError: If no pay rate is resolvable
        """
        source, pay_rate = self.rate_resolver.resolve_pay_rate_with_source(entry, shift, officer)
        overtime_rate = self.rate_resolver.resolve_overtime_rate(entry, shift, officer, pay_rate)
        regular, overtime = split_overtime(entry.total_hours, self.overtime_threshold_hours)
        return PayrollEntryDetail(
            entry=entry,
            regular_hours=regular,
            overtime_hours=overtime,
            pay_rate=pay_rate,
            overtime_rate=overtime_rate,
            pay=regular * pay_rate + overtime * overtime_rate,
            is_custom_rate=source == "shift_pay_rate",
        )

    def _integrity_problem(
        self,
        entry: TimeEntry,
        officers: Mapping[UUID, Officer],
    ) -> IntegrityWarning | None:
        if entry.officer_id is None or entry.officer_id not in officers:
            return IntegrityWarning(
                kind=WarningKind.MISSING_OFFICER,
                message=f"Time entry {entry.entry_id} references no known officer",
                entry_id=entry.entry_id,
                officer_id=entry.officer_id,
            )
        if entry.is_open:
            return IntegrityWarning(
                kind=WarningKind.OPEN_ENTRY,
                message=f"Time entry {entry.entry_id} is approved but has no clock-out",
                entry_id=entry.entry_id,
                officer_id=entry.officer_id,
            )
        if entry.total_hours < 0:
            return IntegrityWarning(
                kind=WarningKind.NEGATIVE_HOURS,
                message=f"Time entry {entry.entry_id} has negative hours {entry.total_hours}",
                entry_id=entry.entry_id,
                officer_id=entry.officer_id,
            )
        return None

    def aggregate(
        self,
        period_start: date,
        period_end: date,
        entries: Iterable[TimeEntry],
        shifts: Mapping[UUID, Shift],
        officers: Mapping[UUID, Officer],
    ) -> PayrollPreview:
        """Compute payroll candidates for the period.

        Deterministic for a given snapshot; nothing is retained between calls.
        """
        if period_end < period_start:
            raise ValueError(f"period_end {period_end} is before period_start {period_start}")

        warnings: list[IntegrityWarning] = []
        accumulators: dict[UUID, _OfficerAccumulator] = {}

        in_scope = [
            e for e in entries
            if e.status == TimeEntryStatus.APPROVED
            and self.in_period(e, period_start, period_end)
        ]

        for entry in sorted(in_scope, key=lambda e: (e.clock_in, str(e.entry_id))):
            problem = self._integrity_problem(entry, officers)
            if problem is not None:
                warnings.append(problem)
                continue

            officer = officers[entry.officer_id]
            shift = shifts.get(entry.shift_id) if entry.shift_id else None
            try:
                detail = self.price_entry(entry, shift, officer)
            except RateNotConfiguredError as exc:
                warnings.append(
                    IntegrityWarning(
                        kind=WarningKind.CONFIGURATION_MISSING,
                        message=str(exc),
                        entry_id=entry.entry_id,
                        officer_id=entry.officer_id,
                    )
                )
                continue

            acc = accumulators.get(officer.officer_id)
            if acc is None:
                acc = accumulators[officer.officer_id] = _OfficerAccumulator(officer=officer)
            acc.add(detail)

        for warning in warnings:
            logger.warning("Excluded from payroll %s..%s: %s", period_start, period_end, warning.message)

        candidates = tuple(
            accumulators[officer_id].finish()
            for officer_id in sorted(accumulators, key=str)
        )
        total = sum((c.net_pay for c in candidates), ZERO)
        fingerprint = LineItemBuilder.compute_fingerprint(
            {
                "period_start": period_start.isoformat(),
                "period_end": period_end.isoformat(),
                "candidates": [c.to_canonical_dict() for c in candidates],
            }
        )

        return PayrollPreview(
            period_start=period_start,
            period_end=period_end,
            candidates=candidates,
            warnings=tuple(warnings),
            total_amount=total,
            fingerprint=fingerprint,
        )
