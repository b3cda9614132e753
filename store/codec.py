"""
Purpose: Record-shape boundary between the hosted backend's JSON documents and
the core's dataclasses.
What it does:
- ride/driver/forecast -> JSON-ready dict (camelCase, ISO-8601 timestamps)
- JSON dict -> ride/driver, resolving every legacy variant ONCE, here:
    driver name / vehicle number top-level OR nested under "assignedDriver"
    coordinates as {lat,lng}, {latitude,longitude} or "13.13° N, 77.56° E"
    startedAt/pickupTime, cancelledAt, acceptedAt aliases
    legacy status "assigned" == accepted

Business logic never sees the raw documents.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from common.exceptions import ValidationError
from drivers.models import Driver, DriverStatus, LocationSample, Vehicle
from forecasting.models import ForecastResult, Trend
from rides.models import AssignedDriver, RideRequest, RideStatus
from rides.priority import PriorityClass, priority_score
from routing.coordinates import LatLng, Place, normalize_location

_LEGACY_STATUSES = {"assigned": RideStatus.ACCEPTED}


def _iso(moment: Optional[datetime]) -> Optional[str]:
    return moment.isoformat() if moment is not None else None


def _parse_time(value: Any) -> Optional[datetime]:
    """
    ISO-8601 -> naive local time, the only form the core compares against its clocks.
    Offset-aware values ("...Z", "+05:30") are converted to local time first.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value).strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Bad timestamp: {value!r}") from None
    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


def _first(document: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = document.get(key)
        if value not in (None, ""):
            return value
    return None


def _point_to_dict(point: Optional[LatLng]) -> Optional[Dict[str, float]]:
    return {"lat": point.lat, "lng": point.lng} if point is not None else None


def _place(name: Any, coordinates: Any) -> Place:
    if not name:
        raise ValidationError("Place name is required")
    point = normalize_location(coordinates) if coordinates is not None else None
    return Place(name=str(name), point=point)


# --- rides ---

def ride_to_dict(ride: RideRequest) -> Dict[str, Any]:
    driver = ride.assigned_driver
    return {
        "id": ride.id,
        "studentId": ride.student_id,
        "studentName": ride.student_name,
        "pickup": ride.pickup.name,
        "pickupCoords": _point_to_dict(ride.pickup.point),
        "destination": ride.destination.name,
        "destinationCoords": _point_to_dict(ride.destination.point),
        "priority": ride.priority_class.value,
        "priorityScore": ride.priority_score,
        "status": ride.status.value,
        "zone": ride.zone,
        "assignedDriver": {
            "driverId": driver.driver_id,
            "driverName": driver.driver_name,
            "vehicleNumber": driver.vehicle_number,
        } if driver else None,
        "requestTime": _iso(ride.request_time),
        "assignedTime": _iso(ride.assigned_time),
        "startedTime": _iso(ride.started_time),
        "completedTime": _iso(ride.completed_time),
        "cancelledTime": _iso(ride.cancelled_time),
        "version": ride.version,
    }


def _assigned_driver(document: Mapping[str, Any]) -> Optional[AssignedDriver]:
    nested = document.get("assignedDriver") or {}
    driver_id = _first(nested, "driverId") or _first(document, "driverId", "assignedDriverId")
    if not driver_id:
        return None
    return AssignedDriver(
        driver_id=str(driver_id),
        driver_name=_first(nested, "driverName") or _first(document, "driverName"),
        vehicle_number=_first(nested, "vehicleNumber") or _first(document, "vehicleNumber"),
    )


def ride_from_dict(document: Mapping[str, Any]) -> RideRequest:
    raw_status = str(document.get("status", RideStatus.PENDING.value)).strip().lower()
    try:
        status = _LEGACY_STATUSES.get(raw_status) or RideStatus(raw_status)
    except ValueError:
        raise ValidationError(f"Unknown ride status: {raw_status!r}") from None

    request_time = _parse_time(document.get("requestTime"))
    if request_time is None:
        raise ValidationError(f"Ride {document.get('id')!r} has no requestTime")

    priority_class = PriorityClass.parse(document.get("priority"))
    return RideRequest(
        id=str(document["id"]),
        student_id=str(document.get("studentId", "")),
        student_name=document.get("studentName"),
        pickup=_place(document.get("pickup"), document.get("pickupCoords")),
        destination=_place(document.get("destination"), document.get("destinationCoords")),
        request_time=request_time,
        priority_class=priority_class,
        priority_score=int(document.get("priorityScore") or 0) or priority_score(priority_class),
        status=status,
        zone=document.get("zone"),
        assigned_driver=_assigned_driver(document),
        assigned_time=_parse_time(_first(document, "assignedTime", "acceptedAt")),
        started_time=_parse_time(_first(document, "startedTime", "startedAt", "pickupTime")),
        completed_time=_parse_time(_first(document, "completedTime", "completedAt")),
        cancelled_time=_parse_time(_first(document, "cancelledTime", "cancelledAt")),
        version=int(document.get("version", 0)),
    )


# --- drivers ---

def driver_to_dict(driver: Driver) -> Dict[str, Any]:
    location = driver.location
    return {
        "id": driver.id,
        "name": driver.name,
        "phone": driver.phone,
        "vehicleNumber": driver.vehicle.number,
        "vehicleType": driver.vehicle.vehicle_type,
        "capacity": driver.vehicle.capacity,
        "status": driver.status.value,
        "currentLocation": location_to_dict(location) if location else None,
    }


def location_to_dict(sample: LocationSample) -> Dict[str, Any]:
    return {
        "coordinates": _point_to_dict(sample.point),
        "timestamp": _iso(sample.timestamp),
        "speed": sample.speed,
        "heading": sample.heading,
    }


def location_from_dict(document: Mapping[str, Any]) -> LocationSample:
    return LocationSample(
        point=normalize_location(document.get("coordinates", document)),
        timestamp=_parse_time(document.get("timestamp")) or datetime.now(),
        speed=document.get("speed"),
        heading=document.get("heading"),
    )


def driver_from_dict(document: Mapping[str, Any]) -> Driver:
    raw_status = str(document.get("status", DriverStatus.OFFLINE.value)).strip().lower()
    try:
        status = DriverStatus(raw_status)
    except ValueError:
        raise ValidationError(f"Unknown driver status: {raw_status!r}") from None

    raw_location = document.get("currentLocation")
    return Driver(
        id=str(document["id"]),
        name=str(document.get("name") or ""),
        vehicle=Vehicle(
            number=str(document.get("vehicleNumber") or ""),
            vehicle_type=document.get("vehicleType") or "bus",
            capacity=document.get("capacity"),
        ),
        status=status,
        location=location_from_dict(raw_location) if raw_location else None,
        phone=document.get("phone"),
    )


# --- forecasts ---

def forecast_to_dict(result: ForecastResult) -> Dict[str, Any]:
    return {
        "zone": result.zone,
        "currentDemand": result.current_demand,
        "predictedDemand": result.predicted_demand,
        "confidence": result.confidence,
        "trend": result.trend.value,
        "anomaly": result.anomaly,
        "insufficientData": result.insufficient_data,
        "hoursAhead": result.hours_ahead,
        "generatedAt": _iso(result.generated_at),
    }


def forecast_from_dict(document: Mapping[str, Any]) -> ForecastResult:
    return ForecastResult(
        zone=str(document["zone"]),
        current_demand=int(document["currentDemand"]),
        predicted_demand=int(document["predictedDemand"]),
        confidence=int(document["confidence"]),
        trend=Trend(document.get("trend", Trend.STABLE.value)),
        anomaly=bool(document.get("anomaly", False)),
        insufficient_data=bool(document.get("insufficientData", False)),
        hours_ahead=int(document.get("hoursAhead", 1)),
        generated_at=_parse_time(document.get("generatedAt")) or datetime.now(),
    )
