"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from workforce_engine.api.dependencies import AppSettings, DbSession
from workforce_engine.models import Shift

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Engine health, store reachability and which fallback rates are configured."""

    status: str
    timestamp: datetime
    database: str
    version: str
    default_pay_rate_configured: bool
    default_bill_rate_configured: bool


async def _store_reachable(db: DbSession) -> bool:
    # Touches a real table so a missing schema reports as unreachable
    try:
        await db.execute(select(Shift.shift_id).limit(1))
    except SQLAlchemyError:
        logger.warning("Store check failed", exc_info=True)
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession, settings: AppSettings) -> HealthResponse:
    """Report engine health.

    Missing default rates are not a failure: entries without a shift or party
    rate are excluded from previews with a warning instead.
    """
    reachable = await _store_reachable(db)
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        timestamp=datetime.now(timezone.utc),
        database="healthy" if reachable else "unhealthy",
        version=settings.engine_version,
        default_pay_rate_configured=settings.default_pay_rate is not None,
        default_bill_rate_configured=settings.default_bill_rate is not None,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(db: DbSession):
    """Ready once the schema answers queries."""
    if not await _store_reachable(db):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
