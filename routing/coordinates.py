#Purpose: The one internal coordinate representation + ingestion-boundary normalisation.
#Driver/ride records reach us in more than one encoding:
#structured {lat, lng} / {latitude, longitude} (possibly nested under "coordinates")
#a formatted admin string like "13.13° N, 77.56° E"
#Everything is converted to LatLng here, once. Nothing past this module sees raw encodings.

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from common.exceptions import ValidationError

logger = logging.getLogger(__name__)

#"13.135° N, 77.566° E" (degree sign optional, hemisphere letters required)
_COORDINATE_STRING = re.compile(
    r"^\s*([\d.]+)\s*°?\s*([NSns])\s*,\s*([\d.]+)\s*°?\s*([EWew])\s*$"
)


@dataclass(frozen=True)
class LatLng:
    """
    A validated (lat, lng) pair in decimal degrees.
    """
    lat: float
    lng: float

    def __post_init__(self):
        for label, value, bound in (("lat", self.lat, 90.0), ("lng", self.lng, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{label} must be a number, got {value!r}")
            if not math.isfinite(value) or abs(value) > bound:
                raise ValidationError(f"{label} out of range: {value!r}")

    def as_tuple(self) -> tuple:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class Place:
    """
    A named location. Coordinates are optional because riders pick places by name;
    anything that needs geometry (routing, zone mapping) must check `point`.
    """
    name: str
    point: Optional[LatLng] = None
    id: Optional[str] = None

    def require_point(self) -> LatLng:
        if self.point is None:
            raise ValidationError(f"Place '{self.name}' has no coordinates")
        return self.point

    def same_place(self, other: "Place") -> bool:
        if self.id is not None and other.id is not None:
            return self.id == other.id
        return self.name == other.name and self.point == other.point


def parse_coordinate_string(text: str) -> LatLng:
    """Convert "13.13° N, 77.56° E" into LatLng (S and W are negative)."""
    match = _COORDINATE_STRING.match(text or "")
    if not match:
        raise ValidationError(f"Unrecognised coordinate string: {text!r}")

    lat = float(match.group(1))
    lng = float(match.group(3))
    if match.group(2).upper() == "S":
        lat = -lat
    if match.group(4).upper() == "W":
        lng = -lng
    return LatLng(lat, lng)


def _from_mapping(raw: Mapping[str, Any]) -> LatLng:
    if "coordinates" in raw and raw["coordinates"] is not None:
        return normalize_location(raw["coordinates"])
    if "lat" in raw and "lng" in raw:
        return LatLng(_as_float(raw["lat"]), _as_float(raw["lng"]))
    if "latitude" in raw and "longitude" in raw:
        return LatLng(_as_float(raw["latitude"]), _as_float(raw["longitude"]))
    raise ValidationError(f"Location mapping has no lat/lng keys: {sorted(raw)}")


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Coordinate must be numeric, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Coordinate must be numeric, got {value!r}") from None


def normalize_location(raw: Any) -> LatLng:
    """
    Ingestion-boundary normaliser. Accepts:
      - LatLng (returned unchanged)
      - (lat, lng) tuple/list
      - mapping with lat/lng or latitude/longitude, optionally nested under "coordinates"
      - formatted string "13.13° N, 77.56° E"

    The string form is still accepted but flagged: nobody has decided which of the two
    encodings is authoritative, so every occurrence is logged as a data-quality warning.
    """
    if isinstance(raw, LatLng):
        return raw

    if isinstance(raw, str):
        point = parse_coordinate_string(raw)
        logger.warning("Formatted coordinate string %r ingested; structured lat/lng expected", raw)
        return point

    if isinstance(raw, Mapping):
        return _from_mapping(raw)

    if isinstance(raw, (tuple, list)) and len(raw) == 2:
        return LatLng(_as_float(raw[0]), _as_float(raw[1]))

    raise ValidationError(f"Unsupported location encoding: {raw!r}")
