"""
Purpose: Core data models for the drivers domain.
What it does:
Defines the structure of a Driver, their vehicle and their last location sample,
independent of whatever backend stores them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from routing.coordinates import LatLng, normalize_location


class DriverStatus(str, Enum):
    """
    idle    -> online, nothing assigned
    active  -> online, carrying at least one accepted/in-progress ride
    offline -> not taking rides
    """
    IDLE = "idle"
    ACTIVE = "active"
    OFFLINE = "offline"


@dataclass(frozen=True)
class Vehicle:
    number: str
    vehicle_type: str = "bus"
    capacity: Optional[int] = None


@dataclass(frozen=True)
class LocationSample:
    """
    Latest telemetry for a driver. Replaced wholesale by the next sample;
    history is not retained.
    """
    point: LatLng
    timestamp: datetime
    speed: Optional[float] = None
    heading: Optional[float] = None


@dataclass(frozen=True)
class Driver:
    """
    A stateless snapshot of a Driver at a specific point in time.
    """
    id: str
    name: str
    vehicle: Vehicle
    status: DriverStatus = DriverStatus.OFFLINE
    location: Optional[LocationSample] = None
    phone: Optional[str] = None

    @property
    def point(self) -> Optional[LatLng]:
        return self.location.point if self.location else None

    @classmethod
    def new(
        cls,
        driver_id: str,
        name: str,
        vehicle_number: str,
        status: str | DriverStatus = DriverStatus.OFFLINE,
        location: Any = None,
        vehicle_type: str = "bus",
        capacity: Optional[int] = None,
        located_at: Optional[datetime] = None,
    ) -> Driver:
        if isinstance(status, str):
            status = DriverStatus(status)

        sample = None
        if location is not None:
            sample = LocationSample(
                point=normalize_location(location),
                timestamp=located_at or datetime.now(),
            )

        return cls(
            id=driver_id,
            name=name,
            vehicle=Vehicle(number=vehicle_number, vehicle_type=vehicle_type, capacity=capacity),
            status=status,
            location=sample,
        )
