from datetime import timedelta

import pytest

from common.exceptions import Conflict, InvalidTransition, ValidationError
from dispatch.dispatcher import Dispatcher
from dispatch.state_machines.driver_state import take_driver_offline
from drivers.models import DriverStatus
from drivers.policy import DriverPolicy
from notifications.service import NotificationService, NotificationType, RecordingNotificationSender
from rides.models import RideStatus, RideSubmission
from routing.coordinates import Place
from store.base import InMemoryRideStore
from store.change_feed import RIDES
from conftest import HOSTEL_AREA, LAB_BLOCK, MAIN_GATE, REFERENCE_TIME, StepClock, make_driver


class ExplodingSender:
    def send(self, notification):
        raise RuntimeError("push gateway down")


@pytest.fixture
def sender():
    return RecordingNotificationSender()


@pytest.fixture
def dispatcher(store, clock, sender, registry):
    return Dispatcher(store, notifier=NotificationService(sender), registry=registry, clock=clock)


def _submit(dispatcher, ride_id, priority="normal", pickup="Main Gate", destination="Lab Block", student="stu"):
    return dispatcher.submit_request(
        RideSubmission(
            student_id=f"{student}_{ride_id}",
            student_name=f"Student {ride_id}",
            pickup=Place(pickup),
            destination=Place(destination),
            priority_class=priority,
        ),
        ride_id=ride_id,
    )


def test_submission_fills_coordinates_and_zone_from_the_registry(dispatcher, store):
    ride = _submit(dispatcher, "r1", pickup="hostel area")

    assert ride.pickup.point is not None
    assert ride.destination.point is not None
    assert ride.zone == "Hostel Area"
    assert store.get_ride("r1") == ride
    assert "r1" in dispatcher.queue


def test_invalid_submission_is_rejected_before_queueing(dispatcher):
    with pytest.raises(ValidationError):
        _submit(dispatcher, "r1", pickup="Lab Block", destination="lab block")
    assert len(dispatcher.queue) == 0


def test_most_urgent_ride_is_dispatched_first(dispatcher, store, sender):
    store.save_driver(make_driver("d1", HOSTEL_AREA.point, name="Ravi"))
    _submit(dispatcher, "normal", "normal")
    _submit(dispatcher, "urgent", "emergency", pickup="Girls Hostel", destination="Main Gate")

    command = dispatcher.dispatch_next()

    assert command.ride_id == "urgent"
    assert command.driver_id == "d1"
    assert command.route_plan.stop_names == ["Ravi (current location)", "Girls Hostel", "Main Gate"]
    assert command.eta_minutes >= 1

    ride = store.get_ride("urgent")
    assert ride.status == RideStatus.ACCEPTED
    assert ride.assigned_driver.driver_name == "Ravi"
    assert store.get_driver("d1").status == DriverStatus.ACTIVE
    assert [n.type for n in sender.outbox] == [NotificationType.RIDE_REQUEST, NotificationType.RIDE_ACCEPTED]
    assert "normal" in dispatcher.queue


def test_ride_waits_when_no_driver_qualifies(dispatcher, store):
    store.save_driver(make_driver("d1", MAIN_GATE.point, status="offline"))
    _submit(dispatcher, "r1")

    assert dispatcher.dispatch_next() is None
    assert "r1" in dispatcher.queue
    assert store.get_ride("r1").status == RideStatus.PENDING


def test_empty_queue_dispatches_nothing(dispatcher):
    assert dispatcher.dispatch_next() is None
    assert dispatcher.dispatch_all() == []


def test_ride_cancelled_elsewhere_is_skipped(dispatcher, store):
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    _submit(dispatcher, "r1")
    # another process cancels directly through the state machine; our queue is stale
    dispatcher.rides.cancel("r1")

    assert dispatcher.dispatch_next() is None
    assert store.get_ride("r1").status == RideStatus.CANCELLED
    assert store.get_driver("d1").status == DriverStatus.IDLE


def test_notification_failures_never_roll_back_the_assignment(store, clock, registry):
    dispatcher = Dispatcher(store, notifier=NotificationService(ExplodingSender()), registry=registry, clock=clock)
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    _submit(dispatcher, "r1")

    command = dispatcher.dispatch_next()

    assert command is not None
    assert store.get_ride("r1").status == RideStatus.ACCEPTED


def test_full_ride_lifecycle_frees_the_driver(dispatcher, store, sender):
    store.save_driver(make_driver("d1", MAIN_GATE.point, name="Ravi"))
    _submit(dispatcher, "r1")
    dispatcher.dispatch_next()

    dispatcher.start_ride("r1")
    ride = dispatcher.complete_ride("r1")

    assert ride.status == RideStatus.COMPLETED
    assert store.get_driver("d1").status == DriverStatus.IDLE
    assert [n.type for n in sender.for_user("stu_r1")] == [
        NotificationType.RIDE_ACCEPTED,
        NotificationType.RIDE_STARTED,
        NotificationType.RIDE_COMPLETED,
    ]


def test_driver_stays_active_while_another_ride_is_open(dispatcher, store):
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    _submit(dispatcher, "r1")
    _submit(dispatcher, "r2")
    dispatcher.dispatch_all()

    dispatcher.cancel_ride("r1")
    assert store.get_driver("d1").status == DriverStatus.ACTIVE

    dispatcher.cancel_ride("r2")
    assert store.get_driver("d1").status == DriverStatus.IDLE


def test_cancel_pending_ride_leaves_the_queue(dispatcher, store, sender):
    _submit(dispatcher, "r1")
    ride = dispatcher.cancel_ride("r1")

    assert ride.status == RideStatus.CANCELLED
    assert "r1" not in dispatcher.queue
    assert sender.for_user("stu_r1")[-1].type == NotificationType.RIDE_CANCELLED


def test_in_progress_ride_cannot_be_cancelled(dispatcher, store):
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    _submit(dispatcher, "r1")
    dispatcher.dispatch_next()
    dispatcher.start_ride("r1")

    with pytest.raises(InvalidTransition):
        dispatcher.cancel_ride("r1")


def test_dispatch_all_stops_at_a_ride_nobody_can_serve(dispatcher, store):
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    _submit(dispatcher, "r1")
    _submit(dispatcher, "r2")
    dispatcher.driver_policy = DriverPolicy(max_pickup_distance_km=0.01)
    _submit(dispatcher, "far", "emergency", pickup="Girls Hostel", destination="Main Gate")

    assert dispatcher.dispatch_all() == []
    assert len(dispatcher.queue) == 3


def test_change_feed_keeps_a_second_dispatcher_in_sync(store, feed, clock, registry):
    first = Dispatcher(store, registry=registry, clock=clock)
    second = Dispatcher(store, registry=registry, clock=clock)
    subscription = feed.subscribe(RIDES)

    _submit(first, "r1")
    _submit(first, "r2", "exam")
    assert second.pump(subscription) == 2
    assert [ride.id for ride in second.queue.ranked()] == ["r2", "r1"]

    store.save_driver(make_driver("d1", MAIN_GATE.point))
    first.dispatch_next()
    second.pump(subscription)

    assert [ride.id for ride in second.queue.ranked()] == ["r1"]
    subscription.close()


def test_rebuild_queue_from_the_store(store, clock, registry):
    original = Dispatcher(store, registry=registry, clock=clock)
    _submit(original, "r1")
    _submit(original, "r2")

    restarted = Dispatcher(store, registry=registry, clock=clock)
    assert restarted.rebuild_queue() == 2
    assert restarted.rebuild_queue() == 0


def test_assign_route_sequences_and_notifies(dispatcher, sender):
    plan = dispatcher.assign_route(
        "d1",
        "Evening Loop",
        Place("Main Gate"),
        Place("Girls Hostel"),
        stops=[Place("Hostel Area"), Place("Lab Block")],
    )

    assert plan.stop_names == ["Main Gate", "Lab Block", "Hostel Area", "Girls Hostel"]
    (notification,) = sender.for_user("d1")
    assert notification.type == NotificationType.ROUTE_ASSIGNED
    assert notification.data["stops"] == ["Lab Block", "Hostel Area"]


def test_concurrent_dispatchers_never_double_assign(store, registry):
    clock = StepClock(REFERENCE_TIME - timedelta(seconds=30))
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    store.save_driver(make_driver("d2", LAB_BLOCK.point))
    first = Dispatcher(store, registry=registry, clock=clock)
    second = Dispatcher(store, registry=registry, clock=clock)

    ride = _submit(first, "r1")
    second.queue.push(ride)

    assert first.dispatch_next() is not None
    assert second.dispatch_next() is None
    assert store.get_ride("r1").version == 1
    with pytest.raises(Conflict):
        first.rides.assign("r1", make_driver("d2", LAB_BLOCK.point))


def test_explicit_pool_is_refreshed_between_assignments(dispatcher, store):
    d1 = make_driver("d1", MAIN_GATE.point)
    d2 = make_driver("d2", LAB_BLOCK.point)
    store.save_driver(d1)
    store.save_driver(d2)
    _submit(dispatcher, "r1")
    _submit(dispatcher, "r2")

    commands = dispatcher.dispatch_all([d1, d2])

    assert [command.driver_id for command in commands] == ["d1", "d2"]
    assert store.get_driver("d2").status == DriverStatus.ACTIVE


def test_driver_offline_in_the_store_is_not_assigned_from_a_stale_pool(dispatcher, store, sender):
    d1 = make_driver("d1", MAIN_GATE.point)
    store.save_driver(d1)
    store.save_driver(take_driver_offline(d1))
    _submit(dispatcher, "r1")

    assert dispatcher.dispatch_next([d1]) is None
    assert store.get_ride("r1").status == RideStatus.PENDING
    assert "r1" in dispatcher.queue
    assert sender.outbox == []


class DriverLeavesDuringCommit(InMemoryRideStore):
    """The assigned driver goes offline right after the ride commit lands."""
    def compare_and_set_ride(self, ride, expected_version):
        updated = super().compare_and_set_ride(ride, expected_version)
        if ride.status == RideStatus.ACCEPTED:
            self.save_driver(take_driver_offline(self.get_driver(ride.assigned_driver.driver_id)))
        return updated


def test_ride_returns_to_pending_when_the_driver_leaves_mid_assignment(feed, clock, sender, registry):
    store = DriverLeavesDuringCommit(feed)
    dispatcher = Dispatcher(store, notifier=NotificationService(sender), registry=registry, clock=clock)
    store.save_driver(make_driver("d1", MAIN_GATE.point))
    _submit(dispatcher, "r1")

    assert dispatcher.dispatch_next() is None

    ride = store.get_ride("r1")
    assert ride.status == RideStatus.PENDING
    assert ride.assigned_driver is None
    assert ride.version == 2
    assert "r1" in dispatcher.queue
    assert store.get_driver("d1").status == DriverStatus.OFFLINE
    assert sender.outbox == []
    assert dispatcher.dispatch_next() is None
