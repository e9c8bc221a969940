"""Invoice API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from workforce_engine.api.dependencies import Actor, AppSettings, DbSession
from workforce_engine.api.schemas import (
    ErrorResponse,
    InvoiceCreate,
    InvoicePreviewResponse,
    InvoiceResponse,
    InvoiceStatusUpdate,
)
from workforce_engine.services.audit import SessionAuditSink
from workforce_engine.services.billing_service import BillingService

router = APIRouter(tags=["invoices"])


@router.get(
    "/clients/{client_id}/invoice-preview",
    response_model=InvoicePreviewResponse,
    responses={404: {"model": ErrorResponse}},
)
async def preview_invoice(
    db: DbSession,
    settings: AppSettings,
    client_id: Annotated[UUID, Path()],
) -> InvoicePreviewResponse:
    """Group the client's unbilled time into line items. Writes nothing."""
    preview = await BillingService(db, settings).preview(client_id)
    return InvoicePreviewResponse.model_validate(preview)


@router.post(
    "/clients/{client_id}/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_invoice(
    db: DbSession,
    settings: AppSettings,
    actor: Actor,
    client_id: Annotated[UUID, Path()],
    payload: InvoiceCreate,
) -> InvoiceResponse:
    """Create and send an invoice, marking its source entries billed."""
    service = BillingService(db, settings, audit=SessionAuditSink(db))
    invoice = await service.confirm(
        client_id,
        actor,
        expected_fingerprint=payload.expected_fingerprint,
        invoice_number=payload.invoice_number,
        issue_date=payload.issue_date,
    )
    await db.commit()
    return InvoiceResponse.model_validate(invoice)


@router.post(
    "/invoices/{invoice_id}/status",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_invoice_status(
    db: DbSession,
    settings: AppSettings,
    actor: Actor,
    invoice_id: Annotated[UUID, Path()],
    payload: InvoiceStatusUpdate,
) -> InvoiceResponse:
    """Move an invoice to paid or overdue."""
    service = BillingService(db, settings, audit=SessionAuditSink(db))
    invoice = await service.transition(invoice_id, payload.status, actor)
    await db.commit()
    return InvoiceResponse.model_validate(invoice)
