#Purpose: Route sequencing for downstream use.
#Returns the waypoint order + totals needed by:
#driver-facing turn sequencing
#the assignment command (distance, ETA)
#Greedy nearest-neighbour, NOT an exact tour: O(n²) in stops and knowingly
#sub-optimal for adversarial layouts. ETAs downstream depend on this exact order.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .coordinates import Place
from .eta_service import travel_minutes
from .geo import haversine_km


@dataclass(frozen=True)
class RoutePlan:
    """
    Ordered visiting sequence: start, stops in chosen order, end.
    """
    waypoints: List[Place]
    distance_km: float
    time_minutes: float

    @property
    def stop_names(self) -> List[str]:
        return [place.name for place in self.waypoints]


def route_distance_km(waypoints: Sequence[Place]) -> float:
    """Sum of consecutive Haversine legs."""
    total = 0.0
    for current_place, next_place in zip(waypoints, waypoints[1:]):
        total += haversine_km(current_place.require_point(), next_place.require_point())
    return total


def optimize_route(start: Place, end: Place, stops: Sequence[Place] = ()) -> RoutePlan:
    """
    Sequence `stops` between `start` and `end`:
      1) begin at start
      2) repeatedly hop to the nearest remaining stop (ties keep input order)
      3) finish at end, unless end is the place we are already standing on

    Every place must carry coordinates (ValidationError otherwise).
    The caller's sequence is never mutated.
    """
    start.require_point()
    end.require_point()
    remaining = list(stops)
    for stop in remaining:
        stop.require_point()

    route: List[Place] = [start]
    current = start

    while remaining:
        nearest_index = 0
        nearest_km = haversine_km(current.point, remaining[0].point)
        for index in range(1, len(remaining)):
            distance_km = haversine_km(current.point, remaining[index].point)
            if distance_km < nearest_km:
                nearest_km = distance_km
                nearest_index = index

        current = remaining.pop(nearest_index)
        route.append(current)

    if not end.same_place(current):
        route.append(end)

    distance_km = route_distance_km(route)
    return RoutePlan(
        waypoints=route,
        distance_km=distance_km,
        time_minutes=travel_minutes(distance_km),
    )
