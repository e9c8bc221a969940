"""Invoice preview, confirmation and status changes against the store."""

import dataclasses
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select

from workforce_engine.calculators.types import WarningKind
from workforce_engine.exceptions import (
    DuplicateCommitError,
    EmptyPeriodError,
    InvalidLineItemsError,
    PreviewMismatchError,
    RecordNotFoundError,
)
from workforce_engine.models import Invoice, TimeEntry
from workforce_engine.services.audit import SessionAuditSink
from workforce_engine.services.billing_service import BillingService
from workforce_engine.services.locking_service import LockingService
from workforce_engine.services.state_machine import InvalidTransitionError, InvoiceStatus


@pytest_asyncio.fixture
async def harbor_time(seeded, add_shift, add_entry, at):
    """5h + 3h at the standard rate and 4h at a $50 shift rate for Harbor; 8h for Mercy."""
    pier = seeded["pier"].site_id
    alice_id = seeded["alice"].officer_id
    bob_id = seeded["bob"].officer_id
    standard = await add_shift(pier, at(8), at(16), officer_id=alice_id, status="completed")
    premium = await add_shift(
        pier, at(8, day_offset=1), at(12, day_offset=1), officer_id=bob_id,
        status="completed", bill_rate=Decimal("50.00"),
    )
    hospital = await add_shift(seeded["ward"].site_id, at(20), at(23, 59), officer_id=bob_id, status="completed")
    return {
        "standard": [
            await add_entry(standard, alice_id, at(8), "5"),
            await add_entry(standard, alice_id, at(13), "3"),
        ],
        "premium": [await add_entry(premium, bob_id, at(8, day_offset=1), "4")],
        "hospital": [await add_entry(hospital, bob_id, at(20), "3.5")],
    }


class TestInvoicePreview:
    """Test grouping a client's unbilled time."""

    async def test_preview_groups_by_rate(self, db_session, test_settings, seeded, harbor_time):
        preview = await BillingService(db_session, test_settings).preview(seeded["harbor"].client_id)

        assert [item.quantity for item in preview.line_items] == [Decimal("8"), Decimal("4")]
        assert [item.amount for item in preview.line_items] == [Decimal("360.00"), Decimal("200.00")]
        assert [item.description for item in preview.line_items] == [
            "Security Services ($45/hr)",
            "Security Services ($50/hr)",
        ]
        assert preview.total_amount == Decimal("560.00")
        hospital_ids = {e.time_entry_id for e in harbor_time["hospital"]}
        assert hospital_ids.isdisjoint(preview.entry_ids)

    async def test_entry_without_shift_is_reported(self, db_session, test_settings, seeded, at):
        """Time whose shift is gone shows up as a warning in every client's preview."""
        orphan = TimeEntry(
            shift_id=None,
            officer_id=seeded["alice"].officer_id,
            clock_in=at(8),
            clock_out=at(16),
            total_hours=Decimal("8"),
            status="approved",
        )
        db_session.add(orphan)
        await db_session.commit()
        service = BillingService(db_session, test_settings)

        for client in (seeded["harbor"], seeded["mercy"]):
            preview = await service.preview(client.client_id)
            assert preview.is_empty
            assert [(w.kind, w.entry_id) for w in preview.warnings] == [
                (WarningKind.MISSING_SITE, orphan.time_entry_id)
            ]

    async def test_unknown_client(self, db_session, test_settings, seeded):
        with pytest.raises(RecordNotFoundError):
            await BillingService(db_session, test_settings).preview(uuid4())


class TestInvoiceConfirm:
    """Test atomic invoice creation."""

    async def test_confirm_sends_invoice_and_bills_entries(
        self, db_session, test_settings, seeded, harbor_time
    ):
        sink = SessionAuditSink(db_session)
        service = BillingService(db_session, test_settings, audit=sink)
        preview = await service.preview(seeded["harbor"].client_id)

        invoice = await service.confirm(
            seeded["harbor"].client_id,
            "billing@example.com",
            expected_fingerprint=preview.fingerprint,
            issue_date=date(2024, 3, 18),
        )
        await db_session.commit()

        assert invoice.status == "sent"
        assert invoice.amount == Decimal("560.00")
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.issue_date == date(2024, 3, 18)
        assert invoice.due_date == date(2024, 3, 18) + timedelta(days=30)
        first_item = invoice.items[0]
        assert first_item["description"] == "Security Services ($45/hr)"
        assert Decimal(first_item["quantity"]) == Decimal("8")
        assert Decimal(first_item["rate"]) == Decimal("45")
        assert first_item["amount"] == "360.00"

        billed = (
            await db_session.execute(
                select(TimeEntry.time_entry_id).where(TimeEntry.invoice_id == invoice.invoice_id)
            )
        ).scalars().all()
        expected = {e.time_entry_id for e in harbor_time["standard"] + harbor_time["premium"]}
        assert set(billed) == expected

        assert [r.action for r in sink.records] == ["create"]
        assert (await service.preview(seeded["harbor"].client_id)).is_empty

    async def test_nothing_left_to_bill(self, db_session, test_settings, seeded, harbor_time):
        service = BillingService(db_session, test_settings)
        await service.confirm(seeded["harbor"].client_id, "billing")
        await db_session.commit()

        with pytest.raises(EmptyPeriodError):
            await service.confirm(seeded["harbor"].client_id, "billing")

    async def test_stale_preview_is_rejected(
        self, db_session, test_settings, seeded, harbor_time, add_shift, add_entry, at
    ):
        service = BillingService(db_session, test_settings)
        preview = await service.preview(seeded["harbor"].client_id)

        late = await add_shift(seeded["pier"].site_id, at(18, day_offset=2), at(22, day_offset=2), status="completed")
        await add_entry(late, seeded["alice"].officer_id, at(18, day_offset=2), "4")

        with pytest.raises(PreviewMismatchError):
            await service.confirm(
                seeded["harbor"].client_id, "billing", expected_fingerprint=preview.fingerprint
            )

    async def test_inconsistent_lines_are_rejected(
        self, db_session, test_settings, seeded, harbor_time, monkeypatch
    ):
        service = BillingService(db_session, test_settings)
        group = service.grouper.group_for_client

        def overstated(*args, **kwargs):
            preview = group(*args, **kwargs)
            first = dataclasses.replace(preview.line_items[0], amount=preview.line_items[0].amount + 1)
            return dataclasses.replace(preview, line_items=(first, *preview.line_items[1:]))

        monkeypatch.setattr(service.grouper, "group_for_client", overstated)

        with pytest.raises(InvalidLineItemsError):
            await service.confirm(seeded["harbor"].client_id, "billing")
        assert (await db_session.execute(select(Invoice))).scalars().all() == []

    async def test_duplicate_invoice_number(self, db_session, test_settings, seeded, harbor_time):
        service = BillingService(db_session, test_settings)
        await service.confirm(seeded["harbor"].client_id, "billing", invoice_number="INV-0001")
        await db_session.commit()

        with pytest.raises(DuplicateCommitError):
            await service.confirm(seeded["mercy"].client_id, "billing", invoice_number="INV-0001")

    async def test_billed_entry_cannot_be_claimed_again(self, db_session, test_settings, seeded, harbor_time):
        service = BillingService(db_session, test_settings)
        invoice = await service.confirm(seeded["harbor"].client_id, "billing")
        await db_session.flush()

        entry_ids = [harbor_time["standard"][0].time_entry_id]
        with pytest.raises(DuplicateCommitError):
            await LockingService(db_session).claim_for_invoice(entry_ids, invoice.invoice_id)


class TestInvoiceStatus:
    """Test invoice lifecycle changes."""

    async def test_sent_to_overdue_to_paid(self, db_session, test_settings, seeded, harbor_time):
        sink = SessionAuditSink(db_session)
        service = BillingService(db_session, test_settings, audit=sink)
        invoice = await service.confirm(seeded["harbor"].client_id, "billing")
        await db_session.commit()

        await service.transition(invoice.invoice_id, InvoiceStatus.OVERDUE, "billing")
        paid = await service.transition(invoice.invoice_id, InvoiceStatus.PAID, "billing")
        await db_session.commit()

        assert paid.status == "paid"
        stored = await db_session.get(Invoice, invoice.invoice_id, populate_existing=True)
        assert stored.status == "paid"
        assert [r.action for r in sink.records] == ["create", "update", "update"]

    async def test_paid_invoice_is_terminal(self, db_session, test_settings, seeded, harbor_time):
        service = BillingService(db_session, test_settings)
        invoice = await service.confirm(seeded["harbor"].client_id, "billing")
        await service.transition(invoice.invoice_id, InvoiceStatus.PAID, "billing")

        with pytest.raises(InvalidTransitionError):
            await service.transition(invoice.invoice_id, InvoiceStatus.OVERDUE, "billing")

    async def test_unknown_invoice(self, db_session, test_settings, seeded):
        with pytest.raises(RecordNotFoundError):
            await BillingService(db_session, test_settings).transition(uuid4(), InvoiceStatus.PAID, "billing")
