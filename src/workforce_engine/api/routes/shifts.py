"""Shift assignment API endpoints."""

from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from workforce_engine.api.dependencies import Actor, AppSettings, DbSession
from workforce_engine.api.schemas import (
    AssignmentRequest,
    AssignmentResponse,
    CompleteExpiredRequest,
    CompleteExpiredResponse,
    ConflictCheckResponse,
    ConflictResponse,
    ErrorResponse,
)
from workforce_engine.calculators.types import ConflictKind
from workforce_engine.services.audit import SessionAuditSink
from workforce_engine.services.shift_service import ShiftService

router = APIRouter(prefix="/shifts", tags=["shifts"])


@router.post(
    "/complete-expired",
    response_model=CompleteExpiredResponse,
)
async def complete_expired_shifts(
    db: DbSession,
    settings: AppSettings,
    actor: Actor,
    payload: CompleteExpiredRequest,
) -> CompleteExpiredResponse:
    """Mark every shift that has ended as completed."""
    as_of = payload.as_of or datetime.now(timezone.utc)
    completed = await ShiftService(db, settings).complete_expired_shifts(as_of)
    await db.commit()
    return CompleteExpiredResponse(completed=completed, as_of=as_of)


@router.get(
    "/{shift_id}/conflicts",
    response_model=ConflictCheckResponse,
    responses={404: {"model": ErrorResponse}},
)
async def check_conflicts(
    db: DbSession,
    settings: AppSettings,
    shift_id: Annotated[UUID, Path()],
    officer_id: Annotated[UUID, Query()],
) -> ConflictCheckResponse:
    """Advisory conflicts for placing an officer on a shift."""
    conflicts = await ShiftService(db, settings).check_conflicts(shift_id, officer_id)
    double_booked = any(c.kind == ConflictKind.DOUBLE_BOOKED for c in conflicts)
    return ConflictCheckResponse(
        shift_id=shift_id,
        officer_id=officer_id,
        conflict=ConflictKind.DOUBLE_BOOKED if double_booked else None,
        conflicts=[ConflictResponse.model_validate(c) for c in conflicts],
    )


@router.post(
    "/{shift_id}/assign",
    response_model=AssignmentResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def assign_officer(
    db: DbSession,
    settings: AppSettings,
    actor: Actor,
    shift_id: Annotated[UUID, Path()],
    payload: AssignmentRequest,
) -> AssignmentResponse:
    """Assign an officer to a shift, or unassign with a null officer.

    Conflicts are returned as warnings; the assignment is still written.
    """
    service = ShiftService(db, settings, audit=SessionAuditSink(db))
    result = await service.assign_officer(shift_id, payload.officer_id, actor)
    await db.commit()
    return AssignmentResponse.model_validate(result)
