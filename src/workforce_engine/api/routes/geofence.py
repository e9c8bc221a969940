"""Geofence API endpoints."""

from fastapi import APIRouter

from workforce_engine.api.dependencies import AppSettings, DbSession
from workforce_engine.api.schemas import (
    ErrorResponse,
    GeofenceEventResponse,
    LocationResponse,
    LocationSample,
)
from workforce_engine.calculators.types import Location
from workforce_engine.services.geofence_service import GeofenceService

router = APIRouter(prefix="/geofence", tags=["geofence"])


@router.post(
    "/locations",
    response_model=LocationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def record_location(
    db: DbSession,
    settings: AppSettings,
    payload: LocationSample,
) -> LocationResponse:
    """Evaluate a GPS sample; a boundary crossing is recorded as an event."""
    location = Location(
        officer_id=payload.officer_id,
        lat=payload.lat,
        lng=payload.lng,
        timestamp=payload.timestamp,
        accuracy=payload.accuracy,
    )
    event = await GeofenceService(db, settings).record_location(location, payload.site_id)
    await db.commit()
    if event is None:
        return LocationResponse(transitioned=False)
    return LocationResponse(
        transitioned=True,
        event=GeofenceEventResponse.model_validate(event),
    )
