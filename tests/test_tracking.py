from datetime import timedelta

import pytest

from common.exceptions import InvalidTransition, NotFound, ValidationError
from drivers.tracking import TrackingSession, publish_location, start_tracking, stop_tracking
from routing.coordinates import LatLng
from conftest import MAIN_GATE, REFERENCE_TIME, make_driver


@pytest.fixture
def tracked_store(store):
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    store.save_driver(make_driver("d2", MAIN_GATE.point))
    return store


def test_sessions_are_independent(tracked_store):
    first = start_tracking(TrackingSession("d1"), watch_handle=7)
    second = TrackingSession("d2")

    assert first.is_tracking
    assert not second.is_tracking
    assert publish_location(second, tracked_store, {"lat": 13.2, "lng": 77.6}) is None
    assert tracked_store.get_driver("d2").point == MAIN_GATE.point


def test_starting_twice_is_rejected():
    session = start_tracking(TrackingSession("d1"))
    with pytest.raises(InvalidTransition):
        start_tracking(session)


def test_stop_returns_the_watch_handle():
    session = start_tracking(TrackingSession("d1"), watch_handle="watch-42")
    assert stop_tracking(session) == "watch-42"
    assert not session.is_tracking
    assert stop_tracking(session) is None


def test_published_fix_is_normalised_and_stored(tracked_store):
    session = start_tracking(TrackingSession("d1"))
    sample = publish_location(
        session,
        tracked_store,
        {"coordinates": {"latitude": 13.135, "longitude": 77.567}},
        timestamp=REFERENCE_TIME,
        speed=12.5,
        heading=90.0,
    )

    assert sample.point == LatLng(13.135, 77.567)
    assert session.last_sample == sample
    assert tracked_store.get_driver("d1").location == sample


def test_last_write_wins_even_for_older_fixes(tracked_store):
    session = start_tracking(TrackingSession("d1"))
    publish_location(session, tracked_store, (13.2, 77.6), timestamp=REFERENCE_TIME)
    publish_location(session, tracked_store, (13.3, 77.7), timestamp=REFERENCE_TIME - timedelta(minutes=1))

    assert tracked_store.get_driver("d1").point == LatLng(13.3, 77.7)


def test_bad_fixes_are_rejected(tracked_store):
    session = start_tracking(TrackingSession("d1"))
    with pytest.raises(ValidationError):
        publish_location(session, tracked_store, {"lat": 200, "lng": 0})

    ghost = start_tracking(TrackingSession("ghost"))
    with pytest.raises(NotFound):
        publish_location(ghost, tracked_store, (13.2, 77.6))
