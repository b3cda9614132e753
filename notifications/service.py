"""
Purpose: Driver/student alerts triggered by dispatch events.
What it does:
- builds the message for each event (route assigned, ride accepted, ...)
- hands it to a NotificationSender (HTTP backend, in-memory outbox, ...)

Delivery is fire-and-forget: a sender failure is logged and dropped. It never
rolls back the ride transition that triggered it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    DRIVER = "DRIVER"
    ADMIN = "ADMIN"


class NotificationType(str, Enum):
    ROUTE_ASSIGNED = "route_assigned"
    RIDE_REQUEST = "ride_request"
    RIDE_ACCEPTED = "ride_accepted"
    RIDE_STARTED = "ride_started"
    RIDE_COMPLETED = "ride_completed"
    RIDE_CANCELLED = "ride_cancelled"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass(frozen=True)
class Notification:
    user_id: str
    user_role: UserRole
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.MEDIUM


class NotificationSender(Protocol):
    def send(self, notification: Notification) -> None:
        ...


class RecordingNotificationSender:
    """
    Keeps every notification in memory. Used by simulations and tests.
    """

    def __init__(self):
        self._outbox: List[Notification] = []
        self._lock = threading.Lock()

    def send(self, notification: Notification) -> None:
        with self._lock:
            self._outbox.append(notification)

    @property
    def outbox(self) -> List[Notification]:
        with self._lock:
            return list(self._outbox)

    def for_user(self, user_id: str) -> List[Notification]:
        return [notification for notification in self.outbox if notification.user_id == user_id]


class NotificationService:
    def __init__(self, sender: Optional[NotificationSender] = None):
        self.sender = sender

    def deliver(self, notification: Notification) -> bool:
        """
        Send one notification. Returns False (never raises) when delivery fails.
        """
        if self.sender is None:
            return False
        try:
            self.sender.send(notification)
        except Exception:
            logger.exception(
                "Notification %s to %s dropped", notification.type.value, notification.user_id
            )
            return False
        logger.debug("Notification sent to %s: %s", notification.user_id, notification.title)
        return True

    # --- driver-facing ---

    def notify_driver_route_assignment(
        self,
        driver_id: str,
        route_name: str,
        start_point: str,
        end_point: str,
        stops: Sequence[str] = (),
        eta_minutes: Optional[float] = None,
    ) -> bool:
        stops_text = f" with {len(stops)} stops" if stops else ""
        return self.deliver(Notification(
            user_id=driver_id,
            user_role=UserRole.DRIVER,
            type=NotificationType.ROUTE_ASSIGNED,
            title="New Route Assigned!",
            message=(
                f'You have been assigned to route "{route_name}" from {start_point} to {end_point}'
                f"{stops_text}. Please check your dashboard for details."
            ),
            data={
                "routeName": route_name,
                "startPoint": start_point,
                "endPoint": end_point,
                "stops": list(stops),
                "etaMinutes": eta_minutes,
            },
            priority=NotificationPriority.URGENT,
        ))

    def notify_driver_ride_request(self, driver_id: str, student_name: str, pickup: str, destination: str, ride_id: str) -> bool:
        return self.deliver(Notification(
            user_id=driver_id,
            user_role=UserRole.DRIVER,
            type=NotificationType.RIDE_REQUEST,
            title="New Ride Request",
            message=f"{student_name} requested a ride from {pickup} to {destination}",
            data={"studentName": student_name, "pickup": pickup, "destination": destination, "rideId": ride_id},
            priority=NotificationPriority.HIGH,
        ))

    # --- student-facing ---

    def notify_student_ride_accepted(self, student_id: str, driver_name: str, vehicle_number: str, estimated_arrival: int) -> bool:
        return self.deliver(Notification(
            user_id=student_id,
            user_role=UserRole.STUDENT,
            type=NotificationType.RIDE_ACCEPTED,
            title="Ride Accepted!",
            message=(
                f"{driver_name} ({vehicle_number}) has accepted your request. "
                f"Estimated arrival: {estimated_arrival} minutes."
            ),
            data={"driverName": driver_name, "vehicleNumber": vehicle_number, "estimatedArrival": estimated_arrival},
            priority=NotificationPriority.HIGH,
        ))

    def notify_student_ride_started(self, student_id: str, driver_name: str) -> bool:
        return self.deliver(Notification(
            user_id=student_id,
            user_role=UserRole.STUDENT,
            type=NotificationType.RIDE_STARTED,
            title="Ride Started",
            message=f"{driver_name} has started your ride. Track your location in real-time.",
            data={"driverName": driver_name},
        ))

    def notify_student_ride_completed(self, student_id: str, ride_id: str) -> bool:
        return self.deliver(Notification(
            user_id=student_id,
            user_role=UserRole.STUDENT,
            type=NotificationType.RIDE_COMPLETED,
            title="Ride Completed",
            message="You have arrived. Thanks for riding the campus shuttle.",
            data={"rideId": ride_id},
            priority=NotificationPriority.LOW,
        ))

    def notify_student_ride_cancelled(self, student_id: str, ride_id: str) -> bool:
        return self.deliver(Notification(
            user_id=student_id,
            user_role=UserRole.STUDENT,
            type=NotificationType.RIDE_CANCELLED,
            title="Ride Cancelled",
            message="Your ride request has been cancelled.",
            data={"rideId": ride_id},
        ))
