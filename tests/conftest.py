from datetime import datetime, timedelta

import pytest

from drivers.models import Driver
from rides.models import RideRequest
from rides.priority import PriorityClass, priority_score
from routing.coordinates import LatLng, Place
from routing.zones import default_zone_registry
from store.base import InMemoryRideStore
from store.change_feed import InMemoryChangeFeed

# Wednesday, 10:00: every seasonal multiplier is 1.0
REFERENCE_TIME = datetime(2024, 3, 6, 10, 0, 0)

MAIN_GATE = Place("Main Gate", LatLng(13.1344, 77.5681))
HOSTEL_AREA = Place("Hostel Area", LatLng(13.1354, 77.5667))
LAB_BLOCK = Place("Lab Block", LatLng(13.1340, 77.5685))
GIRLS_HOSTEL = Place("Girls Hostel", LatLng(13.10646, 77.57173))


class StepClock:
    """Deterministic clock: every call returns the previous value + step."""
    def __init__(self, start=REFERENCE_TIME, step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self):
        self.current = self.current + self.step
        return self.current


def make_ride(ride_id, priority="normal", request_time=REFERENCE_TIME, pickup=MAIN_GATE, destination=LAB_BLOCK, **overrides):
    priority_class = PriorityClass.parse(priority)
    return RideRequest(
        id=ride_id,
        student_id=overrides.pop("student_id", f"student_{ride_id}"),
        pickup=pickup,
        destination=destination,
        request_time=request_time,
        priority_class=priority_class,
        priority_score=priority_score(priority_class),
        **overrides,
    )


def make_driver(driver_id, point, status="idle", located_at=REFERENCE_TIME, name=None):
    return Driver.new(
        driver_id,
        name or f"Driver {driver_id}",
        f"KA-01-{driver_id}",
        status=status,
        location=point,
        located_at=located_at,
    )


@pytest.fixture
def registry():
    return default_zone_registry()


@pytest.fixture
def feed():
    return InMemoryChangeFeed()


@pytest.fixture
def store(feed):
    return InMemoryRideStore(feed)


@pytest.fixture
def clock():
    return StepClock()
