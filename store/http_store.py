#Purpose: The hosted-backend adapter/client for the RideStore interface.
#Sole responsibility: talk to the campus backend via HTTP and return core dataclasses.
#Encapsulates backend-specific details:
#URL construction (/rides, /drivers, /forecasts)
#optimistic concurrency via the If-Match version header
#translating status codes / transport failures into the core error taxonomy
#No retries: the caller decides retry policy.

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from common.exceptions import Conflict, ExternalServiceError, NotFound
from common.settings import load_settings
from drivers.models import Driver, DriverStatus, LocationSample
from forecasting.models import ForecastResult
from rides.models import RideRequest, RideStatus
from .base import RideStore
from .codec import (
    driver_from_dict,
    driver_to_dict,
    forecast_from_dict,
    forecast_to_dict,
    location_to_dict,
    ride_from_dict,
    ride_to_dict,
)

logger = logging.getLogger(__name__)


class HttpRideStore(RideStore):
    """
    RideStore backed by the hosted campus backend.

    Base URL and timeout default to STORE_BASE_URL / HTTP_TIMEOUT_SECONDS from the
    environment (.env supported).
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        settings = load_settings()
        self.base_url = (base_url or settings.store_base_url or "").rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.session = session or requests.Session()

        if not self.base_url:
            raise ValueError("Store base URL not set. Please set STORE_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def _request(self, method: str, path: str, *, kind: str = "", record_id: str = "", **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as error:
            raise ExternalServiceError(f"{method} {url} failed: {error}") from error

        if response.status_code == 404:
            raise NotFound(kind or "record", record_id or path)
        if response.status_code in (409, 412):
            raise Conflict(f"{method} {path} rejected: concurrent modification")
        if response.status_code >= 400:
            raise ExternalServiceError(f"{method} {url} returned HTTP {response.status_code}")

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as error:
            raise ExternalServiceError(f"{method} {url} returned invalid JSON") from error

    #----------------
    # rides
    #----------------
    def insert_ride(self, ride: RideRequest) -> RideRequest:
        data = self._request("POST", "/rides", kind="ride", record_id=ride.id, json=ride_to_dict(ride))
        return ride_from_dict(data) if data else ride

    def get_ride(self, ride_id: str) -> RideRequest:
        return ride_from_dict(self._request("GET", f"/rides/{ride_id}", kind="ride", record_id=ride_id))

    def compare_and_set_ride(self, ride: RideRequest, expected_version: int) -> RideRequest:
        data = self._request(
            "PUT",
            f"/rides/{ride.id}",
            kind="ride",
            record_id=ride.id,
            json=ride_to_dict(ride),
            headers={"If-Match": str(expected_version)},
        )
        return ride_from_dict(data) if data else ride

    def list_rides(self, status: Optional[RideStatus] = None) -> List[RideRequest]:
        params = {"status": status.value} if status is not None else None
        data = self._request("GET", "/rides", params=params) or []
        return [ride_from_dict(document) for document in data]

    #----------------
    # drivers
    #----------------
    def save_driver(self, driver: Driver) -> Driver:
        data = self._request("PUT", f"/drivers/{driver.id}", kind="driver", record_id=driver.id, json=driver_to_dict(driver))
        return driver_from_dict(data) if data else driver

    def get_driver(self, driver_id: str) -> Driver:
        return driver_from_dict(self._request("GET", f"/drivers/{driver_id}", kind="driver", record_id=driver_id))

    def list_drivers(self, status: Optional[DriverStatus] = None) -> List[Driver]:
        params = {"status": status.value} if status is not None else None
        data = self._request("GET", "/drivers", params=params) or []
        return [driver_from_dict(document) for document in data]

    def record_driver_location(self, driver_id: str, sample: LocationSample) -> Driver:
        # plain overwrite; the backend must not compare timestamps (last write wins)
        data = self._request(
            "PATCH",
            f"/drivers/{driver_id}/location",
            kind="driver",
            record_id=driver_id,
            json=location_to_dict(sample),
        )
        return driver_from_dict(data) if data else self.get_driver(driver_id)

    #----------------
    # forecasts
    #----------------
    def save_forecasts(self, results: Mapping[str, ForecastResult]) -> None:
        payload = [forecast_to_dict(result) for result in results.values()]
        self._request("PUT", "/forecasts", json=payload)
        logger.debug("Published %d forecasts", len(payload))

    def latest_forecasts(self) -> Dict[str, ForecastResult]:
        data = self._request("GET", "/forecasts") or []
        results = [forecast_from_dict(document) for document in data]
        return {result.zone: result for result in results}
