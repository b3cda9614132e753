"""
Purpose: Static campus location registry (zone name -> centroid).

Read-only reference data. Used to:
- resolve a place name to coordinates
- map a coordinate onto the nearest zone for demand aggregation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from common.exceptions import NotFound
from .coordinates import LatLng, Place
from .geo import haversine_km


@dataclass(frozen=True)
class Zone:
    name: str
    centroid: LatLng

    def as_place(self) -> Place:
        return Place(name=self.name, point=self.centroid, id=f"zone:{self.name}")


CAMPUS_ZONES: List[Zone] = [
    Zone("Main Gate", LatLng(13.13440, 77.56811)),
    Zone("Hostel Area", LatLng(13.13543, 77.56668)),
    Zone("Lab Block", LatLng(13.13401, 77.56855)),
    Zone("Girls Hostel", LatLng(13.10646, 77.57173)),
]


class ZoneRegistry:
    """
    Name-keyed zone lookup. Names match case-insensitively.
    """

    def __init__(self, zones: Iterable[Zone]):
        self._zones: Dict[str, Zone] = {}
        for zone in zones:
            self._zones[_key(zone.name)] = zone

    def __iter__(self) -> Iterator[Zone]:
        return iter(self._zones.values())

    def __len__(self) -> int:
        return len(self._zones)

    def __contains__(self, name: str) -> bool:
        return _key(name) in self._zones

    def names(self) -> List[str]:
        return [zone.name for zone in self._zones.values()]

    def get(self, name: str) -> Zone:
        zone = self._zones.get(_key(name))
        if zone is None:
            raise NotFound("zone", name)
        return zone

    def nearest(self, point: LatLng) -> Optional[Zone]:
        """Closest centroid by Haversine distance (None for an empty registry)."""
        best: Optional[Zone] = None
        best_km = float("inf")
        for zone in self._zones.values():
            distance_km = haversine_km(point, zone.centroid)
            if distance_km < best_km:
                best, best_km = zone, distance_km
        return best

    def resolve(self, place: Place) -> Optional[Zone]:
        """
        Zone for a place: exact name match first, then nearest centroid if the place
        carries coordinates. None when neither works.
        """
        zone = self._zones.get(_key(place.name))
        if zone is not None:
            return zone
        if place.point is not None:
            return self.nearest(place.point)
        return None

    def locate(self, place: Place) -> Place:
        """Fill in missing coordinates from the registry; NotFound if the name is unknown."""
        if place.point is not None:
            return place
        zone = self.get(place.name)
        return Place(name=place.name, point=zone.centroid, id=place.id)


def _key(name: str) -> str:
    return (name or "").strip().casefold()


def default_zone_registry() -> ZoneRegistry:
    return ZoneRegistry(CAMPUS_ZONES)
