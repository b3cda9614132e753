"""
Drivers domain package.

Public API:
- Models: Driver, DriverStatus, Vehicle, LocationSample
- Selection: filter_eligible_drivers, rank_candidates, select_driver
- Policy: DriverPolicy, default_driver_policy
- Tracking: TrackingSession, start_tracking, stop_tracking, publish_location
"""
from .models import Driver, DriverStatus, LocationSample, Vehicle
from .policy import DriverPolicy, default_driver_policy
from .selection import filter_eligible_drivers, rank_candidates, select_driver
from .tracking import TrackingSession, start_tracking, stop_tracking, publish_location

__all__ = [
    "Driver",
    "DriverStatus",
    "LocationSample",
    "Vehicle",
    "DriverPolicy",
    "default_driver_policy",
    "filter_eligible_drivers",
    "rank_candidates",
    "select_driver",
    "TrackingSession",
    "start_tracking",
    "stop_tracking",
    "publish_location",
]
