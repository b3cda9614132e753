"""
Purpose: The persistent-store seam of the dispatch core.
What it does:
- RideStore: the narrow CRUD interface the core needs (rides, drivers, forecasts)
- InMemoryRideStore: thread-safe implementation used by tests, simulations and
  single-process deployments; emits ChangeDeltas on an optional feed

Concurrency contract (any implementation):
- rides are single-writer via compare_and_set_ride on `version`; the loser gets Conflict
- driver locations are last-write-wins, never rejected for being older
- save_forecasts replaces the whole forecast set
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from common.exceptions import Conflict, NotFound
from drivers.models import Driver, DriverStatus, LocationSample
from forecasting.models import ForecastResult
from rides.models import RideRequest, RideStatus
from .change_feed import DRIVERS, FORECASTS, RIDES, ChangeDelta, DeltaKind, InMemoryChangeFeed


class RideStore(ABC):
    # --- rides ---
    @abstractmethod
    def insert_ride(self, ride: RideRequest) -> RideRequest:
        raise NotImplementedError

    @abstractmethod
    def get_ride(self, ride_id: str) -> RideRequest:
        raise NotImplementedError

    @abstractmethod
    def compare_and_set_ride(self, ride: RideRequest, expected_version: int) -> RideRequest:
        """Commit `ride` only if the stored version still equals expected_version."""
        raise NotImplementedError

    @abstractmethod
    def list_rides(self, status: Optional[RideStatus] = None) -> List[RideRequest]:
        raise NotImplementedError

    # --- drivers ---
    @abstractmethod
    def save_driver(self, driver: Driver) -> Driver:
        raise NotImplementedError

    @abstractmethod
    def get_driver(self, driver_id: str) -> Driver:
        raise NotImplementedError

    @abstractmethod
    def list_drivers(self, status: Optional[DriverStatus] = None) -> List[Driver]:
        raise NotImplementedError

    @abstractmethod
    def record_driver_location(self, driver_id: str, sample: LocationSample) -> Driver:
        raise NotImplementedError

    # --- forecasts ---
    @abstractmethod
    def save_forecasts(self, results: Mapping[str, ForecastResult]) -> None:
        raise NotImplementedError

    @abstractmethod
    def latest_forecasts(self) -> Dict[str, ForecastResult]:
        raise NotImplementedError


class InMemoryRideStore(RideStore):
    def __init__(self, feed: Optional[InMemoryChangeFeed] = None):
        self.feed = feed
        self._rides: Dict[str, RideRequest] = {}
        self._drivers: Dict[str, Driver] = {}
        self._forecasts: Dict[str, ForecastResult] = {}
        self._lock = threading.RLock()

    def _publish(self, collection: str, kind: DeltaKind, record_id: str, record) -> None:
        if self.feed is not None:
            self.feed.publish(ChangeDelta(collection, kind, record_id, record))

    # --- rides ---

    def insert_ride(self, ride: RideRequest) -> RideRequest:
        with self._lock:
            if ride.id in self._rides:
                raise Conflict(f"Ride {ride.id} already exists")
            self._rides[ride.id] = ride
            self._publish(RIDES, DeltaKind.CREATED, ride.id, ride)
        return ride

    def get_ride(self, ride_id: str) -> RideRequest:
        with self._lock:
            ride = self._rides.get(ride_id)
        if ride is None:
            raise NotFound("ride", ride_id)
        return ride

    def compare_and_set_ride(self, ride: RideRequest, expected_version: int) -> RideRequest:
        with self._lock:
            current = self._rides.get(ride.id)
            if current is None:
                raise NotFound("ride", ride.id)
            if current.version != expected_version:
                raise Conflict(
                    f"Ride {ride.id} changed concurrently "
                    f"(expected v{expected_version}, found v{current.version} {current.status.value})"
                )
            self._rides[ride.id] = ride
            self._publish(RIDES, DeltaKind.UPDATED, ride.id, ride)
        return ride

    def list_rides(self, status: Optional[RideStatus] = None) -> List[RideRequest]:
        with self._lock:
            rides = list(self._rides.values())
        if status is not None:
            rides = [ride for ride in rides if ride.status == status]
        return rides

    # --- drivers ---

    def save_driver(self, driver: Driver) -> Driver:
        with self._lock:
            kind = DeltaKind.UPDATED if driver.id in self._drivers else DeltaKind.CREATED
            self._drivers[driver.id] = driver
            self._publish(DRIVERS, kind, driver.id, driver)
        return driver

    def get_driver(self, driver_id: str) -> Driver:
        with self._lock:
            driver = self._drivers.get(driver_id)
        if driver is None:
            raise NotFound("driver", driver_id)
        return driver

    def list_drivers(self, status: Optional[DriverStatus] = None) -> List[Driver]:
        with self._lock:
            drivers = list(self._drivers.values())
        if status is not None:
            drivers = [driver for driver in drivers if driver.status == status]
        return drivers

    def record_driver_location(self, driver_id: str, sample: LocationSample) -> Driver:
        with self._lock:
            driver = self._drivers.get(driver_id)
            if driver is None:
                raise NotFound("driver", driver_id)
            updated = replace(driver, location=sample)
            self._drivers[driver_id] = updated
            self._publish(DRIVERS, DeltaKind.UPDATED, driver_id, updated)
        return updated

    # --- forecasts ---

    def save_forecasts(self, results: Mapping[str, ForecastResult]) -> None:
        with self._lock:
            self._forecasts = dict(results)
            for zone, result in self._forecasts.items():
                self._publish(FORECASTS, DeltaKind.UPDATED, zone, result)

    def latest_forecasts(self) -> Dict[str, ForecastResult]:
        with self._lock:
            return dict(self._forecasts)
