"""Geofence distance and boundary-crossing evaluation."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

from workforce_engine.calculators.types import (
    GeofenceEvent,
    GeofenceEventType,
    Location,
    Site,
)

EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two decimal-degree coordinates."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlng / 2) ** 2)
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def round_meters(distance: float) -> int:
    """Round half-up to a whole meter."""
    return int(Decimal(repr(distance)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def describe_distance(meters: float) -> str:
    """Short human-readable distance: 42m, 350m, 1.2km."""
    if meters < 100:
        return f"{round_meters(meters)}m"
    if meters < 1000:
        return f"{round_meters(meters / 10) * 10}m"
    return f"{meters / 1000:.1f}km"


class GeofenceTracker:
    """Classifies GPS samples against a site's circular geofence.

    Events are only produced when the inside/outside state changes relative
    to the caller-supplied previous state, so steady polling does not flood
    the event log.
    """

    def __init__(self, approach_ratio: float = 0.8):
        self.approach_ratio = approach_ratio

    @staticmethod
    def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
        return haversine_distance(lat1, lng1, lat2, lng2)

    def distance_from_site(self, location: Location, site: Site) -> float:
        return self.distance_meters(location.lat, location.lng, site.lat, site.lng)

    def is_inside(self, location: Location, site: Site) -> bool:
        return self.distance_from_site(location, site) <= site.radius

    def is_approaching_boundary(self, location: Location, site: Site) -> bool:
        """Inside, but in the outer band of the radius. Early warning only."""
        distance = self.distance_from_site(location, site)
        return site.radius * self.approach_ratio < distance <= site.radius

    def check_transition(
        self,
        location: Location,
        site: Site,
        was_inside: bool,
    ) -> GeofenceEvent | None:
        """Return an enter/exit event if the sample changes state, else None."""
        distance = self.distance_from_site(location, site)
        inside = distance <= site.radius
        if inside == was_inside:
            return None

        return GeofenceEvent(
            officer_id=location.officer_id,
            site_id=site.site_id,
            event_type=GeofenceEventType.ENTER if inside else GeofenceEventType.EXIT,
            lat=location.lat,
            lng=location.lng,
            distance_from_center=round_meters(distance),
            timestamp=location.timestamp,
            acknowledged=False,
        )
