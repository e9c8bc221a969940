"""Tests for geofence distance and transitions."""

import math
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from workforce_engine.calculators.geofence import (
    EARTH_RADIUS_METERS,
    GeofenceTracker,
    describe_distance,
    haversine_distance,
    round_meters,
)
from workforce_engine.calculators.types import GeofenceEventType, Location, Site

SITE_LAT = 40.7128
SITE_LNG = -74.0060


def meters_north(meters: float) -> float:
    """Latitude reached by moving ``meters`` due north of the site."""
    return SITE_LAT + math.degrees(meters / EARTH_RADIUS_METERS)


@pytest.fixture
def site() -> Site:
    return Site(site_id=uuid4(), client_id=uuid4(), lat=SITE_LAT, lng=SITE_LNG, radius=200, name="Pier 17")


@pytest.fixture
def tracker() -> GeofenceTracker:
    return GeofenceTracker()


def sample(lat: float, lng: float = SITE_LNG, officer_id=None) -> Location:
    return Location(
        officer_id=officer_id or uuid4(),
        lat=lat,
        lng=lng,
        timestamp=datetime(2024, 3, 4, 9, 30, tzinfo=timezone.utc),
    )


class TestDistance:
    """Test Haversine distance."""

    def test_same_point(self):
        assert haversine_distance(SITE_LAT, SITE_LNG, SITE_LAT, SITE_LNG) == 0

    def test_one_degree_of_latitude(self):
        assert round_meters(haversine_distance(0, 0, 1, 0)) == 111195

    def test_symmetric(self):
        there = haversine_distance(SITE_LAT, SITE_LNG, 40.7306, -73.9352)
        back = haversine_distance(40.7306, -73.9352, SITE_LAT, SITE_LNG)
        assert there == pytest.approx(back)

    def test_tracker_distance_in_meters(self, tracker, site):
        assert round_meters(tracker.distance_meters(SITE_LAT, SITE_LNG, meters_north(250), SITE_LNG)) == 250
        assert tracker.distance_from_site(sample(meters_north(120)), site) == pytest.approx(120)

    def test_round_meters_half_up(self):
        assert round_meters(249.5) == 250
        assert round_meters(249.49) == 249

    @pytest.mark.parametrize(
        "meters, expected",
        [(42.4, "42m"), (347, "350m"), (1234, "1.2km")],
    )
    def test_describe_distance(self, meters, expected):
        assert describe_distance(meters) == expected


class TestTransitions:
    """Test enter/exit detection."""

    def test_center_is_inside(self, tracker, site):
        assert tracker.is_inside(sample(SITE_LAT), site)

    def test_entering_emits_enter_event(self, tracker, site):
        location = sample(SITE_LAT)

        event = tracker.check_transition(location, site, was_inside=False)

        assert event is not None
        assert event.event_type == GeofenceEventType.ENTER
        assert event.distance_from_center == 0
        assert event.site_id == site.site_id
        assert event.officer_id == location.officer_id
        assert event.timestamp == location.timestamp
        assert event.acknowledged is False

    def test_leaving_emits_one_exit_event(self, tracker, site):
        """Inside -> 250 m north with radius 200 is one exit at 250 m."""
        officer_id = uuid4()
        outside = sample(meters_north(250), officer_id=officer_id)

        event = tracker.check_transition(outside, site, was_inside=True)

        assert event is not None
        assert event.event_type == GeofenceEventType.EXIT
        assert event.distance_from_center == 250
        # Staying outside produces nothing further
        assert tracker.check_transition(outside, site, was_inside=False) is None

    def test_no_event_without_state_change(self, tracker, site):
        assert tracker.check_transition(sample(meters_north(50)), site, was_inside=True) is None

    def test_approaching_boundary(self, tracker, site):
        assert tracker.is_approaching_boundary(sample(meters_north(180)), site)
        assert not tracker.is_approaching_boundary(sample(meters_north(100)), site)
        assert not tracker.is_approaching_boundary(sample(meters_north(250)), site)

    def test_site_requires_positive_radius(self):
        with pytest.raises(ValueError):
            Site(site_id=uuid4(), client_id=uuid4(), lat=SITE_LAT, lng=SITE_LNG, radius=0)
