"""
Purpose: The ride lifecycle state machine.

    pending -> accepted -> in-progress -> completed
       |           |
       +-----------+--> cancelled

What it does:
- Pure transition functions (record in, new record out, version bumped)
- RideStateMachine: binds those functions to a RideStore and commits each
  transition with compare-and-set, so two writers racing on one ride can
  never both win. The loser sees Conflict.

Rule: No retries in here. A Conflict goes back to whoever asked.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Union

from common.exceptions import Conflict, InvalidTransition, ValidationError
from drivers.models import Driver
from rides.models import AssignedDriver, RideRequest, RideStatus, RideSubmission
from rides.priority import PriorityClass, priority_score

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


# -------------------------
# Pure transitions
# -------------------------

def submit_ride(submission: RideSubmission, at: datetime, ride_id: Optional[str] = None) -> RideRequest:
    """
    Validate a submission and turn it into a pending ride stamped with `at`.
    """
    pickup_name = _clean_name(submission.pickup.name)
    destination_name = _clean_name(submission.destination.name)

    if not submission.student_id:
        raise ValidationError("A ride needs a student_id")
    if not pickup_name:
        raise ValidationError("Pickup location is required")
    if not destination_name:
        raise ValidationError("Destination is required")
    if pickup_name.casefold() == destination_name.casefold():
        raise ValidationError(f"Pickup and destination are the same place: {submission.pickup.name!r}")

    priority_class = PriorityClass.parse(submission.priority_class)

    return RideRequest(
        id=ride_id or uuid.uuid4().hex,
        student_id=submission.student_id,
        student_name=submission.student_name,
        pickup=submission.pickup,
        destination=submission.destination,
        request_time=at,
        priority_class=priority_class,
        priority_score=priority_score(priority_class),
        status=RideStatus.PENDING,
        zone=submission.zone,
    )


def assign_ride(ride: RideRequest, driver: Union[Driver, AssignedDriver], at: datetime) -> RideRequest:
    """
    pending -> accepted. A ride that is no longer pending was taken or
    cancelled by someone else, which is a Conflict rather than a bad request.
    """
    if ride.status != RideStatus.PENDING:
        raise Conflict(f"Ride {ride.id} is no longer pending (status '{ride.status.value}')")
    _check_monotonic(ride, at)

    return replace(
        ride,
        status=RideStatus.ACCEPTED,
        assigned_driver=_as_assigned_driver(driver),
        assigned_time=at,
        version=ride.version + 1,
    )


def start_ride(ride: RideRequest, at: datetime) -> RideRequest:
    if ride.status != RideStatus.ACCEPTED:
        raise InvalidTransition(ride.id, ride.status.value, "start")
    _check_monotonic(ride, at)
    return replace(ride, status=RideStatus.IN_PROGRESS, started_time=at, version=ride.version + 1)


def complete_ride(ride: RideRequest, completion_time: datetime) -> RideRequest:
    if ride.status != RideStatus.IN_PROGRESS:
        raise InvalidTransition(ride.id, ride.status.value, "complete")
    _check_monotonic(ride, completion_time)
    return replace(ride, status=RideStatus.COMPLETED, completed_time=completion_time, version=ride.version + 1)


def cancel_ride(ride: RideRequest, at: datetime) -> RideRequest:
    """
    pending|accepted -> cancelled. The driver is released, since only
    accepted / in-progress / completed rides carry one.
    """
    if ride.status not in (RideStatus.PENDING, RideStatus.ACCEPTED):
        raise InvalidTransition(ride.id, ride.status.value, "cancel")
    _check_monotonic(ride, at)
    return replace(
        ride,
        status=RideStatus.CANCELLED,
        assigned_driver=None,
        cancelled_time=at,
        version=ride.version + 1,
    )


# -------------------------
# Store-bound service
# -------------------------

class RideStateMachine:
    """
    Applies transitions to the committed copy of a ride.

    Every mutating call reads the ride, applies the pure transition and writes it
    back with compare_and_set_ride(expected_version=<version read>). Callers that
    acted on an older snapshot can pass `expected_version` to fail fast.
    """

    def __init__(self, store, clock: Clock = datetime.now):
        self.store = store
        self.clock = clock

    def submit(self, submission: RideSubmission, ride_id: Optional[str] = None) -> RideRequest:
        ride = submit_ride(submission, self.clock(), ride_id=ride_id)
        self.store.insert_ride(ride)
        logger.info(
            "Ride %s submitted by %s (%s, score %s)",
            ride.id, ride.student_id, ride.priority_class.value, ride.priority_score,
        )
        return ride

    def assign(self, ride_id: str, driver: Union[Driver, AssignedDriver], expected_version: Optional[int] = None) -> RideRequest:
        return self._commit(ride_id, lambda ride: assign_ride(ride, driver, self.clock()), expected_version)

    def start(self, ride_id: str, expected_version: Optional[int] = None) -> RideRequest:
        return self._commit(ride_id, lambda ride: start_ride(ride, self.clock()), expected_version)

    def complete(self, ride_id: str, completion_time: Optional[datetime] = None, expected_version: Optional[int] = None) -> RideRequest:
        return self._commit(
            ride_id,
            lambda ride: complete_ride(ride, completion_time or self.clock()),
            expected_version,
        )

    def cancel(self, ride_id: str, expected_version: Optional[int] = None) -> RideRequest:
        return self._commit(ride_id, lambda ride: cancel_ride(ride, self.clock()), expected_version)

    def _commit(
        self,
        ride_id: str,
        transition: Callable[[RideRequest], RideRequest],
        expected_version: Optional[int],
    ) -> RideRequest:
        current = self.store.get_ride(ride_id)
        if expected_version is not None and current.version != expected_version:
            raise Conflict(
                f"Ride {ride_id} changed since it was read "
                f"(expected v{expected_version}, found v{current.version} {current.status.value})"
            )

        updated = transition(current)
        committed = self.store.compare_and_set_ride(updated, current.version)
        logger.info("Ride %s: %s -> %s", ride_id, current.status.value, committed.status.value)
        return committed


# -------------------------
# Internal helpers
# -------------------------

def _clean_name(name: Optional[str]) -> str:
    return (name or "").strip()


def _check_monotonic(ride: RideRequest, at: datetime) -> None:
    latest = ride.latest_timestamp()
    if at < latest:
        raise ValidationError(
            f"Timestamp {at.isoformat()} is earlier than ride {ride.id}'s last change {latest.isoformat()}"
        )


def _as_assigned_driver(driver: Union[Driver, AssignedDriver]) -> AssignedDriver:
    if isinstance(driver, AssignedDriver):
        return driver
    return AssignedDriver(
        driver_id=driver.id,
        driver_name=driver.name,
        vehicle_number=driver.vehicle.number,
    )
