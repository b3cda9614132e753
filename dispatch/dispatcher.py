"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Takes new ride requests into the pending queue, pops the most urgent one, picks a
driver, commits the assignment through the ride state machine, sequences the
driver's route and tells the driver and the student. Keeps the queue in step with
ride changes made elsewhere (other dispatchers, admin cancellations) via the
store's change feed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from common.exceptions import Conflict, InvalidTransition
from drivers.models import Driver
from drivers.policy import DriverPolicy, default_driver_policy
from drivers.selection import select_driver
from notifications.service import NotificationService
from rides.models import RideRequest, RideStatus, RideSubmission
from rides.queue import PendingRideQueue
from routing.coordinates import Place
from routing.eta_service import estimate_pickup_eta_minutes
from routing.route_service import RoutePlan, optimize_route
from routing.zones import ZoneRegistry, default_zone_registry
from store.change_feed import RIDES, ChangeDelta, DeltaKind, Subscription
from .state_machines.driver_state import mark_driver_active, mark_driver_idle
from .state_machines.ride_state import RideStateMachine

logger = logging.getLogger(__name__)

_IN_SERVICE = (RideStatus.ACCEPTED, RideStatus.IN_PROGRESS)


@dataclass(frozen=True)
class AssignmentCommand:
    """What the driver app receives once a ride is theirs."""
    ride_id: str
    driver_id: str
    route_plan: RoutePlan
    eta_minutes: int


class Dispatcher:
    """
    Coordinates pending rides, drivers and routes for one campus.
    """
    def __init__(
        self,
        store,
        queue: Optional[PendingRideQueue] = None,
        notifier: Optional[NotificationService] = None,
        driver_policy: Optional[DriverPolicy] = None,
        registry: Optional[ZoneRegistry] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.queue = queue if queue is not None else PendingRideQueue()
        self.notifier = notifier or NotificationService()
        self.driver_policy = driver_policy or default_driver_policy()
        self.registry = registry or default_zone_registry()
        self.clock = clock
        self.rides = RideStateMachine(store, clock)

    # --- intake ---

    def submit_request(self, submission: RideSubmission, ride_id: Optional[str] = None) -> RideRequest:
        """
        Validate, persist and queue a new ride. Known campus place names get their
        coordinates and zone filled in from the zone registry.
        """
        ride = self.rides.submit(self._locate_submission(submission), ride_id=ride_id)
        self.queue.push(ride)
        return ride

    def rebuild_queue(self) -> int:
        """Re-queue every pending ride in the store (e.g. after a restart)."""
        added = 0
        for ride in self.store.list_rides(RideStatus.PENDING):
            if self.queue.push(ride):
                added += 1
        logger.info("Pending queue rebuilt with %s rides", added)
        return added

    # --- assignment ---

    def dispatch_next(self, drivers: Optional[Sequence[Driver]] = None) -> Optional[AssignmentCommand]:
        """
        Pop the most urgent pending ride and try to give it to a driver.

        Returns None when the queue is empty, when no driver qualifies (the ride is
        put back), or when the ride changed under us (someone else assigned or
        cancelled it first; it is dropped from this dispatcher's queue). If the chosen
        driver cannot be made active after the commit, the ride is returned to pending.
        """
        ride = self.queue.pop()
        if ride is None:
            return None

        pickup_point = ride.pickup.point
        if pickup_point is None:
            logger.warning("Ride %s has no pickup coordinates for %r; left pending", ride.id, ride.pickup.name)
            self.queue.push(ride)
            return None

        driver = select_driver(pickup_point, self._driver_pool(drivers), self.driver_policy, self.clock())
        if driver is None:
            logger.info("No eligible driver for ride %s; left pending", ride.id)
            self.queue.push(ride)
            return None

        try:
            accepted = self.rides.assign(ride.id, driver, expected_version=ride.version)
        except Conflict as error:
            logger.info("Skipping ride %s: %s", ride.id, error)
            return None

        try:
            self.store.save_driver(mark_driver_active(self.store.get_driver(driver.id)))
        except InvalidTransition as error:
            logger.warning("Driver %s cannot take ride %s: %s", driver.id, ride.id, error)
            self._revert_assignment(ride, accepted)
            return None

        route_plan = self.plan_route_for_driver(driver, accepted)
        eta_minutes = estimate_pickup_eta_minutes(driver.point, pickup_point)
        command = AssignmentCommand(
            ride_id=accepted.id,
            driver_id=driver.id,
            route_plan=route_plan,
            eta_minutes=eta_minutes,
        )
        logger.info(
            "Ride %s -> driver %s (%.2f km, pickup in %s min)",
            accepted.id, driver.id, route_plan.distance_km, eta_minutes,
        )

        self.notifier.notify_driver_ride_request(
            driver.id,
            accepted.student_name or accepted.student_id,
            accepted.pickup.name,
            accepted.destination.name,
            accepted.id,
        )
        self.notifier.notify_student_ride_accepted(
            accepted.student_id, driver.name, driver.vehicle.number, eta_minutes
        )
        return command

    def dispatch_all(self, drivers: Optional[Sequence[Driver]] = None) -> List[AssignmentCommand]:
        """
        Keep dispatching until the queue is empty or the head cannot be served.
        """
        commands: List[AssignmentCommand] = []
        while len(self.queue):
            head = self.queue.peek()
            command = self.dispatch_next(drivers)
            if command is not None:
                commands.append(command)
            elif head is not None and head.id in self.queue:
                # head went back in the queue: nobody can take it right now
                break
        return commands

    # --- routing ---

    def plan_route_for_driver(self, driver: Driver, ride: RideRequest) -> RoutePlan:
        """Driver's current position -> pickup -> destination."""
        start = Place(name=f"{driver.name} (current location)", point=driver.point, id=f"driver:{driver.id}")
        return optimize_route(start, ride.destination, stops=[ride.pickup])

    def assign_route(
        self,
        driver_id: str,
        route_name: str,
        start: Place,
        end: Place,
        stops: Sequence[Place] = (),
    ) -> RoutePlan:
        """
        Sequence a named multi-stop shuttle route and push it to the driver.
        Places without coordinates are looked up by name in the zone registry.
        """
        plan = optimize_route(
            self.registry.locate(start),
            self.registry.locate(end),
            [self.registry.locate(stop) for stop in stops],
        )
        middle = [place.name for place in plan.waypoints[1:-1]]
        self.notifier.notify_driver_route_assignment(
            driver_id,
            route_name,
            plan.waypoints[0].name,
            plan.waypoints[-1].name,
            stops=middle,
            eta_minutes=plan.time_minutes,
        )
        return plan

    # --- progress ---

    def start_ride(self, ride_id: str) -> RideRequest:
        ride = self.rides.start(ride_id)
        driver_name = ride.assigned_driver.driver_name if ride.assigned_driver else None
        self.notifier.notify_student_ride_started(ride.student_id, driver_name or "Your driver")
        return ride

    def complete_ride(self, ride_id: str, completion_time: Optional[datetime] = None) -> RideRequest:
        ride = self.rides.complete(ride_id, completion_time)
        self._release_driver(ride.assigned_driver_id)
        self.notifier.notify_student_ride_completed(ride.student_id, ride.id)
        return ride

    def cancel_ride(self, ride_id: str) -> RideRequest:
        before = self.store.get_ride(ride_id)
        ride = self.rides.cancel(ride_id, expected_version=before.version)
        self.queue.remove(ride_id)
        if before.assigned_driver_id:
            self._release_driver(before.assigned_driver_id)
        self.notifier.notify_student_ride_cancelled(ride.student_id, ride.id)
        return ride

    # --- change feed ---

    def handle_ride_delta(self, delta: ChangeDelta) -> bool:
        """
        Mirror one ride change into the pending queue.
        Returns True when the queue changed.
        """
        if delta.collection != RIDES:
            return False

        ride = delta.record
        if delta.kind == DeltaKind.DELETED or ride is None:
            return self.queue.remove(delta.record_id)
        if ride.status == RideStatus.PENDING:
            return self.queue.push(ride)
        return self.queue.remove(ride.id)

    def pump(self, subscription: Subscription) -> int:
        """Apply every delta already waiting on the subscription; returns how many changed the queue."""
        changed = 0
        for delta in subscription.drain():
            if self.handle_ride_delta(delta):
                changed += 1
        return changed

    # --- internal helpers ---

    def _locate_submission(self, submission: RideSubmission) -> RideSubmission:
        pickup = self._locate(submission.pickup)
        destination = self._locate(submission.destination)
        zone = submission.zone
        if zone is None:
            resolved = self.registry.resolve(pickup)
            zone = resolved.name if resolved else None
        return replace(submission, pickup=pickup, destination=destination, zone=zone)

    def _locate(self, place: Place) -> Place:
        if place.point is None and place.name in self.registry:
            return self.registry.locate(place)
        return place

    def _release_driver(self, driver_id: Optional[str]) -> None:
        """Driver goes back to idle once none of their rides still needs them."""
        if not driver_id:
            return
        still_busy = any(
            ride.assigned_driver_id == driver_id and ride.status in _IN_SERVICE
            for ride in self.store.list_rides()
        )
        if still_busy:
            return
        self.store.save_driver(mark_driver_idle(self.store.get_driver(driver_id)))

    def _driver_pool(self, drivers: Optional[Sequence[Driver]]) -> List[Driver]:
        """
        Current driver records from the store. An explicit pool only narrows which
        drivers are considered; their statuses always come from the store.
        """
        current = self.store.list_drivers()
        if drivers is None:
            return current
        wanted = {driver.id for driver in drivers}
        return [driver for driver in current if driver.id in wanted]

    def _revert_assignment(self, pending: RideRequest, accepted: RideRequest) -> None:
        """Put an accepted ride back to pending when its driver could not be activated."""
        reverted = replace(pending, version=accepted.version + 1)
        try:
            self.store.compare_and_set_ride(reverted, accepted.version)
        except Conflict as error:
            logger.info("Ride %s changed before it could be returned to pending: %s", pending.id, error)
            return
        self.queue.push(reverted)
