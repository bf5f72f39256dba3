"""Geographic helpers: great-circle distance and search radius policy."""

from .distance import Coordinates, distance_km, great_circle_km
from .radius import MAX_RADIUS_KM, MIN_RADIUS_KM, is_urban_area, recommended_radius_km

__all__ = [
    "Coordinates",
    "MAX_RADIUS_KM",
    "MIN_RADIUS_KM",
    "distance_km",
    "great_circle_km",
    "is_urban_area",
    "recommended_radius_km",
]
