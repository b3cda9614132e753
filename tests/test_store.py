from dataclasses import replace
from datetime import timedelta

import pytest

from common.exceptions import Conflict, NotFound
from drivers.models import DriverStatus, LocationSample
from forecasting.models import ForecastResult, Trend
from rides.models import RideStatus
from routing.coordinates import LatLng
from store.change_feed import DRIVERS, RIDES, DeltaKind
from conftest import MAIN_GATE, REFERENCE_TIME, make_driver, make_ride


def test_insert_and_read_rides(store):
    ride = make_ride("r1")
    store.insert_ride(ride)

    assert store.get_ride("r1") == ride
    assert store.list_rides(RideStatus.PENDING) == [ride]
    assert store.list_rides(RideStatus.COMPLETED) == []

    with pytest.raises(Conflict):
        store.insert_ride(ride)
    with pytest.raises(NotFound):
        store.get_ride("r2")


def test_compare_and_set_checks_the_version(store):
    ride = make_ride("r1")
    store.insert_ride(ride)

    updated = store.compare_and_set_ride(replace(ride, version=1, zone="Main Gate"), 0)
    assert store.get_ride("r1").zone == "Main Gate"

    with pytest.raises(Conflict):
        store.compare_and_set_ride(updated, 0)
    with pytest.raises(NotFound):
        store.compare_and_set_ride(make_ride("ghost"), 0)


def test_every_write_is_published(store, feed):
    with feed.subscribe() as subscription:
        store.insert_ride(make_ride("r1"))
        store.save_driver(make_driver("d1", MAIN_GATE.point))
        store.save_driver(make_driver("d1", MAIN_GATE.point, status="offline"))

        deltas = subscription.drain()

    assert [(delta.collection, delta.kind, delta.record_id) for delta in deltas] == [
        (RIDES, DeltaKind.CREATED, "r1"),
        (DRIVERS, DeltaKind.CREATED, "d1"),
        (DRIVERS, DeltaKind.UPDATED, "d1"),
    ]


def test_driver_queries(store):
    store.save_driver(make_driver("d1", MAIN_GATE.point, status="idle"))
    store.save_driver(make_driver("d2", MAIN_GATE.point, status="offline"))

    assert [driver.id for driver in store.list_drivers(DriverStatus.IDLE)] == ["d1"]
    assert len(store.list_drivers()) == 2
    with pytest.raises(NotFound):
        store.get_driver("d3")


def test_location_updates_are_last_write_wins(store):
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    newer = LocationSample(LatLng(13.2, 77.6), REFERENCE_TIME + timedelta(minutes=5))
    older = LocationSample(LatLng(13.3, 77.7), REFERENCE_TIME)

    store.record_driver_location("d1", newer)
    store.record_driver_location("d1", older)

    assert store.get_driver("d1").location == older
    with pytest.raises(NotFound):
        store.record_driver_location("nobody", older)


def test_forecast_set_is_replaced_not_merged(store):
    first = {"Main Gate": ForecastResult("Main Gate", 3, 4, 60, Trend.STABLE, generated_at=REFERENCE_TIME)}
    second = {"Lab Block": ForecastResult("Lab Block", 1, 2, 40, Trend.STABLE, generated_at=REFERENCE_TIME)}

    store.save_forecasts(first)
    store.save_forecasts(second)

    assert store.latest_forecasts() == second
