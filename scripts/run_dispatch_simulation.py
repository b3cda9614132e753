import os
from datetime import datetime, timedelta

from common.settings import configure_logging
from dispatch.dispatcher import Dispatcher
from drivers.models import Driver
from forecasting.service import DemandForecastService
from notifications.service import NotificationService, RecordingNotificationSender
from rides.models import RideSubmission
from rides.priority import PriorityClass
from rides.reports import export_rides_csv, summarize_rides
from routing.coordinates import Place
from routing.zones import default_zone_registry
from store.base import InMemoryRideStore
from store.change_feed import RIDES, InMemoryChangeFeed


class SimulatedClock:
    """Moves forward a fixed step every time someone reads it."""
    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=2)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


def build_drivers(registry, located_at):
    zones = list(registry)
    drivers = []
    for index, zone in enumerate(zones):
        drivers.append(
            Driver.new(
                f"drv_{index + 1:03d}",
                f"Driver {index + 1}",
                f"KA-01-{4100 + index}",
                status="idle",
                location=zone.centroid,
                located_at=located_at,
            )
        )
    return drivers


def build_requests():
    # (student, pickup, destination, urgency)
    return [
        ("stu_001", "Hostel Area", "Lab Block", PriorityClass.NORMAL),
        ("stu_002", "Main Gate", "Hostel Area", PriorityClass.EXAM),
        ("stu_003", "Girls Hostel", "Main Gate", PriorityClass.EMERGENCY),
        ("stu_004", "Lab Block", "Girls Hostel", PriorityClass.NORMAL),
        ("stu_005", "Main Gate", "Lab Block", PriorityClass.EMERGENCY),
        ("stu_006", "Hostel Area", "Main Gate", PriorityClass.EXAM),
    ]


def run_simulation():
    configure_logging()
    print("=== STARTING CAMPUS DISPATCH SIMULATION ===")

    clock = SimulatedClock(datetime.now().replace(microsecond=0))
    registry = default_zone_registry()
    feed = InMemoryChangeFeed()
    store = InMemoryRideStore(feed)
    sender = RecordingNotificationSender()
    dispatcher = Dispatcher(store, notifier=NotificationService(sender), registry=registry, clock=clock)
    subscription = feed.subscribe(RIDES)

    # 1. Drivers come online at each zone
    for driver in build_drivers(registry, clock.current):
        store.save_driver(driver)
    print(f"{len(store.list_drivers())} drivers online.\n")

    # 2. Students submit requests
    for student_id, pickup, destination, urgency in build_requests():
        ride = dispatcher.submit_request(
            RideSubmission(
                student_id=student_id,
                student_name=student_id.replace("stu_", "Student "),
                pickup=Place(pickup),
                destination=Place(destination),
                priority_class=urgency,
            )
        )
        print(f"Submitted {ride.id[:8]} {pickup:>12} -> {destination:<12} [{ride.priority_class.value}]")
    dispatcher.pump(subscription)

    print("\n--- Pending queue (dispatch order) ---")
    for position, ride in enumerate(dispatcher.queue.ranked(), start=1):
        print(f"{position}. {ride.id[:8]} score={ride.priority_score} requested={ride.request_time:%H:%M:%S}")

    # 3. Dispatch everything we can
    print("\n--- Assignments ---")
    commands = dispatcher.dispatch_all()
    for command in commands:
        route = " -> ".join(command.route_plan.stop_names)
        print(
            f"[ASSIGNED] {command.ride_id[:8]} -> {command.driver_id} | pickup in {command.eta_minutes} min | "
            f"{command.route_plan.distance_km:.2f} km | {route}"
        )
    dispatcher.pump(subscription)
    print(f"{len(dispatcher.queue)} rides still waiting for a driver.")

    # 4. Drivers progress their rides; the last one is cancelled by the student
    for command in commands[:-1]:
        dispatcher.start_ride(command.ride_id)
        dispatcher.complete_ride(command.ride_id)
    if commands:
        dispatcher.cancel_ride(commands[-1].ride_id)

    # 5. Serve whoever is left now that drivers are free again
    for command in dispatcher.dispatch_all():
        print(f"[ASSIGNED] {command.ride_id[:8]} -> {command.driver_id} (second round)")
    dispatcher.pump(subscription)

    # 6. A forecast cycle over what just happened
    forecasts = DemandForecastService(store, registry=registry, clock=clock).run_cycle()
    print("\n--- Demand forecast (next hour) ---")
    for zone, result in forecasts.items():
        flag = " (baseline)" if result.insufficient_data else ""
        print(f"{zone:<14} now={result.current_demand:<3} next={result.predicted_demand:<3} "
              f"{result.trend.value:<10} confidence={result.confidence}%{flag}")

    # 7. Report
    summary = summarize_rides(store.list_rides())
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "dispatch_results.csv")
    rows = export_rides_csv(store.list_rides(), output_path)

    subscription.close()
    print("\n=== SIMULATION COMPLETE ===")
    print(f"Rides: {summary.total} | completed {summary.completed} | cancelled {summary.cancelled} | "
          f"pending {summary.pending} | completion rate {summary.completion_rate}%")
    print(f"Notifications sent: {len(sender.outbox)}")
    print(f"{rows} rides written to '{output_path}'.")


if __name__ == "__main__":
    run_simulation()
