#Marks routing as a package.
#Re-exports the public geometry/routing API (LatLng, haversine_km, optimize_route,
#ZoneRegistry, ...) so other modules import from routing without knowing file names.
#No business logic.

from .coordinates import LatLng, Place, normalize_location, parse_coordinate_string
from .geo import EARTH_RADIUS_KM, haversine_km
from .eta_service import AVERAGE_SPEED_KMH, travel_minutes, estimate_pickup_eta_minutes
from .route_service import RoutePlan, optimize_route, route_distance_km
from .zones import CAMPUS_ZONES, Zone, ZoneRegistry, default_zone_registry

__all__ = [
    "LatLng",
    "Place",
    "normalize_location",
    "parse_coordinate_string",
    "EARTH_RADIUS_KM",
    "haversine_km",
    "AVERAGE_SPEED_KMH",
    "travel_minutes",
    "estimate_pickup_eta_minutes",
    "RoutePlan",
    "optimize_route",
    "route_distance_km",
    "CAMPUS_ZONES",
    "Zone",
    "ZoneRegistry",
    "default_zone_registry",
]
