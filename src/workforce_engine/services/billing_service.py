"""Invoice preview, confirmation and status changes."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from uuid import UUID, uuid4

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators import types
from workforce_engine.calculators.invoice_grouper import InvoiceLineGrouper
from workforce_engine.calculators.line_builder import LineItemBuilder
from workforce_engine.calculators.rate_resolver import RateResolver
from workforce_engine.calculators.types import InvoicePreview
from workforce_engine.config import Settings, get_settings
from workforce_engine.exceptions import (
    DuplicateCommitError,
    EmptyPeriodError,
    InvalidLineItemsError,
    PreviewMismatchError,
    RecordNotFoundError,
)
from workforce_engine.models import Client, Invoice, Shift, Site, TimeEntry
from workforce_engine.services.audit import AuditCallback, build_record, emit_audit
from workforce_engine.services.locking_service import LockingService
from workforce_engine.services.state_machine import InvoiceStateMachine, InvoiceStatus

logger = logging.getLogger(__name__)


def generate_invoice_number() -> str:
    return f"INV-{uuid4().hex[:8].upper()}"


class BillingService:
    """Builds invoices from a client's unbilled time.

    Confirmation inserts the invoice and claims its source entries in the
    caller's transaction; an entry can end up on at most one invoice.
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
        self.grouper = InvoiceLineGrouper(RateResolver.from_settings(self.settings))
        self.locking = LockingService(session)

    async def preview(self, client_id: UUID) -> InvoicePreview:
        """Group the client's unbilled approved entries. Writes nothing.

        Raises:
            RecordNotFoundError: If the client does not exist
        """
        client = await self.session.get(Client, client_id)
        if client is None:
            raise RecordNotFoundError("client", client_id)

        result = await self.session.execute(
            select(TimeEntry, Shift)
            .join(Shift, TimeEntry.shift_id == Shift.shift_id)
            .join(Site, Shift.site_id == Site.site_id)
            .where(
                Site.client_id == client_id,
                TimeEntry.status == "approved",
                TimeEntry.invoice_id.is_(None),
            )
        )
        entries = []
        shifts = {}
        for entry, shift in result.all():
            entries.append(entry.to_snapshot())
            shifts[shift.shift_id] = shift.to_snapshot()

        return self.grouper.group_for_client(
            client.to_snapshot(), entries, shifts, await self._unattributed_entries()
        )

    async def _unattributed_entries(self) -> list[types.TimeEntry]:
        """Unbilled approved entries that no client's preview can claim."""
        result = await self.session.execute(
            select(TimeEntry)
            .outerjoin(Shift, TimeEntry.shift_id == Shift.shift_id)
            .outerjoin(Site, Shift.site_id == Site.site_id)
            .where(
                TimeEntry.status == "approved",
                TimeEntry.invoice_id.is_(None),
                or_(Shift.shift_id.is_(None), Site.site_id.is_(None)),
            )
        )
        return [entry.to_snapshot() for entry in result.scalars().all()]

    async def confirm(
        self,
        client_id: UUID,
        actor: str,
        expected_fingerprint: str | None = None,
        invoice_number: str | None = None,
        issue_date: date | None = None,
    ) -> Invoice:
        """Create and send an invoice for everything currently unbilled.

        Raises:
            RecordNotFoundError: If the client does not exist
            PreviewMismatchError: If the data changed since the reviewed preview
            EmptyPeriodError: If nothing is billable
            InvalidLineItemsError: If a line amount is not quantity x rate
            DuplicateCommitError: If the number is taken or entries were billed
        """
        preview = await self.preview(client_id)
        if expected_fingerprint is not None and expected_fingerprint != preview.fingerprint:
            raise PreviewMismatchError("invoice", expected_fingerprint, preview.fingerprint)
        if preview.is_empty:
            raise EmptyPeriodError("invoice")
        errors = LineItemBuilder.validate_lines(preview.line_items)
        if errors:
            raise InvalidLineItemsError("invoice", errors)

        InvoiceStateMachine.validate_transition(InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value)

        issued = issue_date or datetime.now(timezone.utc).date()
        invoice = Invoice(
            client_id=client_id,
            invoice_number=invoice_number or generate_invoice_number(),
            issue_date=issued,
            due_date=issued + timedelta(days=self.settings.invoice_due_days),
            amount=preview.total_amount,
            status=InvoiceStatus.SENT.value,
            items=[item.to_canonical_dict() for item in preview.line_items],
            fingerprint=preview.fingerprint,
            created_by=actor,
        )
        self.session.add(invoice)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateCommitError(
                "invoice", f"invoice number {invoice.invoice_number} already exists"
            ) from exc

        await self.locking.claim_for_invoice(preview.entry_ids, invoice.invoice_id)

        logger.info(
            "Invoice %s sent to client %s for %s",
            invoice.invoice_number,
            client_id,
            invoice.amount,
        )
        emit_audit(
            self.audit,
            build_record(
                action="create",
                description=f"Generated Invoice {invoice.invoice_number} for ${invoice.amount:.2f}",
                actor=actor,
                target_resource="Invoice",
                target_id=invoice.invoice_id,
                metadata={
                    "client_id": str(client_id),
                    "line_items": len(preview.line_items),
                    "entries": len(preview.entry_ids),
                    "fingerprint": preview.fingerprint,
                },
            ),
        )
        return invoice

    async def transition(self, invoice_id: UUID, to_status: InvoiceStatus, actor: str) -> Invoice:
        """Move an invoice along its lifecycle.

        Raises:
            RecordNotFoundError: If the invoice does not exist
            InvalidTransitionError: If the transition is not allowed
        """
        invoice = await self.session.get(Invoice, invoice_id, populate_existing=True)
        if invoice is None:
            raise RecordNotFoundError("invoice", invoice_id)

        target = InvoiceStatus(to_status).value
        previous = invoice.status
        InvoiceStateMachine.validate_transition(previous, target)
        invoice.status = target
        await self.session.flush()

        logger.info("Invoice %s moved %s -> %s", invoice.invoice_number, previous, target)
        emit_audit(
            self.audit,
            build_record(
                action="update",
                description=f"Marked Invoice {invoice.invoice_number} as {target}",
                actor=actor,
                target_resource="Invoice",
                target_id=invoice.invoice_id,
                metadata={"from_status": previous, "to_status": target},
            ),
        )
        return invoice
