#Purpose: Great-circle math shared by routing, driver selection and zone mapping.
#Haversine on a sphere of radius 6371 km; symmetric by construction.

from __future__ import annotations

import math

from .coordinates import LatLng

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: LatLng, b: LatLng) -> float:
    """
    Great-circle distance between two points in kilometers.

    a = sin²(Δlat/2) + cos(lat1)·cos(lat2)·sin²(Δlng/2)
    d = 2R·atan2(√a, √(1−a))
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lng = math.radians(b.lng - a.lng)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) ** 2
    )
    # float noise can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
