"""
Purpose: Business rules and distance math for choosing a driver for a ride.
What it does:
Accepts a pickup point and a pool of drivers, filters out ineligible drivers,
and ranks the remaining ones (idle first, then closest to the pickup).
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from routing.coordinates import LatLng
from routing.geo import haversine_km
from .models import Driver, DriverStatus
from .policy import DriverPolicy, default_driver_policy


def filter_eligible_drivers(
    drivers: Sequence[Driver],
    policy: Optional[DriverPolicy] = None,
    now: Optional[datetime] = None,
) -> List[Driver]:
    """
    Returns only drivers who are online, have a known location,
    and whose location sample is fresh enough to trust.
    """
    policy = policy or default_driver_policy()
    now = now or datetime.now()
    eligible = []

    for driver in drivers:
        if driver.status == DriverStatus.OFFLINE:
            continue

        if driver.location is None:
            continue

        if policy.max_location_age_seconds is not None:
            age_seconds = (now - driver.location.timestamp).total_seconds()
            if age_seconds > policy.max_location_age_seconds:
                continue

        eligible.append(driver)

    return eligible


def rank_candidates(
    pickup: LatLng,
    drivers: Sequence[Driver],
    policy: Optional[DriverPolicy] = None,
    now: Optional[datetime] = None,
) -> List[Tuple[Driver, float]]:
    """
    (driver, distance_km) pairs for eligible drivers within reach of `pickup`,
    best first. Ties on distance fall back to driver id so the order is deterministic.
    """
    policy = policy or default_driver_policy()

    candidates: List[Tuple[Driver, float]] = []
    for driver in filter_eligible_drivers(drivers, policy, now):
        distance_km = haversine_km(driver.point, pickup)
        if distance_km > policy.max_pickup_distance_km:
            continue
        candidates.append((driver, distance_km))

    candidates.sort(
        key=lambda candidate: (
            policy.prefer_idle and candidate[0].status != DriverStatus.IDLE,
            candidate[1],
            candidate[0].id,
        )
    )
    return candidates[:policy.max_candidates]


def select_driver(
    pickup: LatLng,
    drivers: Sequence[Driver],
    policy: Optional[DriverPolicy] = None,
    now: Optional[datetime] = None,
) -> Optional[Driver]:
    """The single best driver for the pickup, or None if nobody qualifies."""
    candidates = rank_candidates(pickup, drivers, policy, now)
    return candidates[0][0] if candidates else None
