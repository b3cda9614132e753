#Purpose: ETA estimation policy.
#Converts route distances into minutes used by:
#the RoutePlan total time
#student-facing "driver arrives in X minutes"
#Fixed average campus shuttle speed; no traffic model.

from __future__ import annotations

import math

from .coordinates import LatLng
from .geo import haversine_km

AVERAGE_SPEED_KMH = 20


def travel_minutes(distance_km: float) -> float:
    """time_minutes = distance_km / AVERAGE_SPEED_KMH * 60"""
    return (distance_km / AVERAGE_SPEED_KMH) * 60


def estimate_pickup_eta_minutes(driver_point: LatLng, pickup_point: LatLng) -> int:
    """
    Whole minutes until the driver reaches the pickup (rounded up, at least 1),
    which is what the ride-accepted notification shows.
    """
    minutes = travel_minutes(haversine_km(driver_point, pickup_point))
    return max(1, math.ceil(minutes))
