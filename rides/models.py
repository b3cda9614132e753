"""
Purpose: Domain models for the Rides capability.
What it does:
- Defines core data structures:
- RideSubmission (what a student sends: pickup, destination, urgency)
- RideRequest (the ride record the state machine moves through its lifecycle)
- AssignedDriver (canonical shape of the driver sub-record on a ride)

Defines enums/constants:
- RideStatus = pending | accepted | in-progress | completed | cancelled

Rule: No store access, no transition logic. Models only.
Transitions live in dispatch/state_machines/ride_state.py.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from routing.coordinates import Place
from .priority import PriorityClass, DEFAULT_PRIORITY_SCORE


class RideStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: FrozenSet[RideStatus] = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})

# statuses in which a ride must carry an assigned driver (and no others)
DRIVER_BOUND_STATUSES: FrozenSet[RideStatus] = frozenset(
    {RideStatus.ACCEPTED, RideStatus.IN_PROGRESS, RideStatus.COMPLETED}
)

ALLOWED_TRANSITIONS: Dict[RideStatus, FrozenSet[RideStatus]] = {
    RideStatus.PENDING: frozenset({RideStatus.ACCEPTED, RideStatus.CANCELLED}),
    RideStatus.ACCEPTED: frozenset({RideStatus.IN_PROGRESS, RideStatus.CANCELLED}),
    RideStatus.IN_PROGRESS: frozenset({RideStatus.COMPLETED}),
    RideStatus.COMPLETED: frozenset(),
    RideStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class AssignedDriver:
    driver_id: str
    driver_name: Optional[str] = None
    vehicle_number: Optional[str] = None


@dataclass(frozen=True)
class RideSubmission:
    """
    Inbound ride request, before the state machine has accepted it.
    """
    student_id: str
    pickup: Place
    destination: Place
    priority_class: PriorityClass = PriorityClass.NORMAL
    student_name: Optional[str] = None
    zone: Optional[str] = None


@dataclass(frozen=True)
class RideRequest:
    """
    A ride record. Immutable: every transition produces a new instance with
    `version` bumped, which the store uses for compare-and-set.
    """
    id: str
    student_id: str
    pickup: Place
    destination: Place
    request_time: datetime

    priority_class: PriorityClass = PriorityClass.NORMAL
    priority_score: int = DEFAULT_PRIORITY_SCORE
    status: RideStatus = RideStatus.PENDING

    student_name: Optional[str] = None
    zone: Optional[str] = None
    assigned_driver: Optional[AssignedDriver] = None

    # per-transition stamps, each set at most once
    assigned_time: Optional[datetime] = None
    started_time: Optional[datetime] = None
    completed_time: Optional[datetime] = None
    cancelled_time: Optional[datetime] = None

    version: int = 0

    @property
    def assigned_driver_id(self) -> Optional[str]:
        return self.assigned_driver.driver_id if self.assigned_driver else None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def latest_timestamp(self) -> datetime:
        stamps = [
            stamp
            for stamp in (
                self.request_time,
                self.assigned_time,
                self.started_time,
                self.completed_time,
                self.cancelled_time,
            )
            if stamp is not None
        ]
        return max(stamps)
