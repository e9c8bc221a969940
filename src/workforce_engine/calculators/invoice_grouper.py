"""Invoice preview: unbilled time grouped into one line per effective bill rate."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from uuid import UUID

from workforce_engine.calculators.line_builder import LineItemBuilder
from workforce_engine.calculators.rate_resolver import RateResolver
from workforce_engine.calculators.timekeeping import ZERO
from workforce_engine.calculators.types import (
    Client,
    IntegrityWarning,
    InvoicePreview,
    Shift,
    TimeEntry,
    TimeEntryStatus,
    WarningKind,
)
from workforce_engine.exceptions import RateNotConfiguredError

logger = logging.getLogger(__name__)


class InvoiceLineGrouper:
    """Groups a client's unbilled, approved time into invoice line items.

    Entries are grouped by resolved bill rate only, not by site or date.
    Which entries are unbilled is decided by the caller; the result is a
    preview and commits nothing.
    """

    def __init__(self, rate_resolver: RateResolver):
        self.rate_resolver = rate_resolver

    def group_for_client(
        self,
        client: Client,
        entries: Iterable[TimeEntry],
        shifts: Mapping[UUID, Shift],
        unattributed: Iterable[TimeEntry] = (),
    ) -> InvoicePreview:
        """Group billable entries by rate.

        ``unattributed`` holds unbilled entries whose shift or site is gone;
        they belong to no client and are reported as warnings only.
        """
        warnings: list[IntegrityWarning] = [
            IntegrityWarning(
                kind=WarningKind.MISSING_SITE,
                message=f"Time entry {entry.entry_id} has no shift site to bill to",
                entry_id=entry.entry_id,
                officer_id=entry.officer_id,
            )
            for entry in sorted(unattributed, key=lambda e: (e.clock_in, str(e.entry_id)))
            if entry.status == TimeEntryStatus.APPROVED
        ]
        hours_by_rate: dict[Decimal, Decimal] = {}
        entries_by_rate: dict[Decimal, list[UUID]] = {}

        approved = [e for e in entries if e.status == TimeEntryStatus.APPROVED]
        for entry in sorted(approved, key=lambda e: (e.clock_in, str(e.entry_id))):
            if entry.is_open or entry.total_hours < 0:
                kind = WarningKind.OPEN_ENTRY if entry.is_open else WarningKind.NEGATIVE_HOURS
                warnings.append(
                    IntegrityWarning(
                        kind=kind,
                        message=f"Time entry {entry.entry_id} cannot be billed ({kind.value})",
                        entry_id=entry.entry_id,
                        officer_id=entry.officer_id,
                    )
                )
                continue

            shift = shifts.get(entry.shift_id) if entry.shift_id else None
            try:
                rate = self.rate_resolver.resolve_bill_rate(entry, shift, client)
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

            # Decimal("45") and Decimal("45.00") are equal and hash alike
            hours_by_rate[rate] = hours_by_rate.get(rate, ZERO) + entry.total_hours
            entries_by_rate.setdefault(rate, []).append(entry.entry_id)

        for warning in warnings:
            logger.warning("Excluded from invoice for client %s: %s", client.client_id, warning.message)

        line_items = tuple(
            LineItemBuilder.create_service_line(rate, hours_by_rate[rate], entries_by_rate[rate])
            for rate in sorted(hours_by_rate)
        )
        fingerprint = LineItemBuilder.compute_fingerprint(
            {
                "client_id": str(client.client_id),
                "items": [item.to_canonical_dict() for item in line_items],
                "entries": sorted(str(eid) for item in line_items for eid in item.entry_ids),
            }
        )
        return InvoicePreview(
            client_id=client.client_id,
            line_items=line_items,
            total_amount=LineItemBuilder.sum_amounts(line_items),
            warnings=tuple(warnings),
            fingerprint=fingerprint,
        )
