"""
Rides domain package.

Public API:
- Domain models: RideRequest, RideSubmission, RideStatus, AssignedDriver
- Ranking: PriorityClass, priority_score, rank_key
- Pending queue: PendingRideQueue
"""
from .models import (
    ALLOWED_TRANSITIONS,
    AssignedDriver,
    RideRequest,
    RideStatus,
    RideSubmission,
)
from .priority import PriorityClass, priority_score, rank_key, precedes
from .queue import PendingRideQueue

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AssignedDriver",
    "RideRequest",
    "RideStatus",
    "RideSubmission",
    "PriorityClass",
    "priority_score",
    "rank_key",
    "precedes",
    "PendingRideQueue",
]
