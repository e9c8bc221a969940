"""Recording GPS samples as geofence events."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.geofence import GeofenceTracker
from workforce_engine.calculators.types import GeofenceEvent as GeofenceEventSnapshot
from workforce_engine.calculators.types import Location
from workforce_engine.config import Settings, get_settings
from workforce_engine.exceptions import RecordNotFoundError
from workforce_engine.models import GeofenceEvent, Site

logger = logging.getLogger(__name__)


class GeofenceService:
    """Appends an enter/exit event when a sample crosses a site boundary.

    The previous state is the latest event for the officer and site at or
    before the sample; with no history the officer counts as outside.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        tracker: GeofenceTracker | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.tracker = tracker or GeofenceTracker(self.settings.geofence_approach_ratio)

    async def was_inside(self, officer_id: UUID, site_id: UUID, location: Location) -> bool:
        last = await self.session.scalar(
            select(GeofenceEvent)
            .where(
                GeofenceEvent.officer_id == officer_id,
                GeofenceEvent.site_id == site_id,
                GeofenceEvent.timestamp <= location.timestamp,
            )
            .order_by(GeofenceEvent.timestamp.desc())
            .limit(1)
        )
        return last.is_inside if last is not None else False

    async def record_location(self, location: Location, site_id: UUID) -> GeofenceEventSnapshot | None:
        """Evaluate one sample; return the appended event, or None without a crossing.

        Raises:
            RecordNotFoundError: If the site does not exist
        """
        site = await self.session.get(Site, site_id)
        if site is None:
            raise RecordNotFoundError("site", site_id)

        was_inside = await self.was_inside(location.officer_id, site_id, location)
        event = self.tracker.check_transition(location, site.to_snapshot(), was_inside)
        if event is None:
            return None

        self.session.add(GeofenceEvent.from_snapshot(event))
        await self.session.flush()
        logger.info(
            "Officer %s %s site %s at %dm",
            event.officer_id,
            "entered" if event.event_type.value == "enter" else "left",
            site_id,
            event.distance_from_center,
        )
        return event
