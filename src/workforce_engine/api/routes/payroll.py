"""Payroll API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from workforce_engine.api.dependencies import Actor, AppSettings, DbSession
from workforce_engine.api.schemas import (
    ErrorResponse,
    PayrollPreviewResponse,
    PayrollRunCreate,
    PayrollRunResponse,
)
from workforce_engine.services.audit import SessionAuditSink
from workforce_engine.services.payroll_service import PayrollService

router = APIRouter(prefix="/payroll", tags=["payroll"])


def _check_period(period_start: date, period_end: date) -> None:
    if period_end < period_start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_end must not be before period_start",
        )


@router.get(
    "/preview",
    response_model=PayrollPreviewResponse,
    responses={400: {"model": ErrorResponse}},
)
async def preview_payroll(
    db: DbSession,
    settings: AppSettings,
    period_start: Annotated[date, Query()],
    period_end: Annotated[date, Query()],
) -> PayrollPreviewResponse:
    """Compute payroll candidates for a period. Idempotent; writes nothing."""
    _check_period(period_start, period_end)
    preview = await PayrollService(db, settings).preview(period_start, period_end)
    return PayrollPreviewResponse.from_preview(preview)


@router.post(
    "/runs",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def confirm_payroll(
    db: DbSession,
    settings: AppSettings,
    actor: Actor,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Confirm a reviewed preview as a payroll run.

    Pass the preview's fingerprint to reject confirmation if anything changed.
    """
    _check_period(payload.period_start, payload.period_end)
    service = PayrollService(db, settings, audit=SessionAuditSink(db))
    run = await service.confirm(
        payload.period_start,
        payload.period_end,
        actor,
        expected_fingerprint=payload.expected_fingerprint,
    )
    await db.commit()
    return PayrollRunResponse.model_validate(run)
