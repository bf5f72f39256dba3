"""Great-circle distance, the only distance function in the dispatch core.

Matching radii, the stored ride distance and the fare all use the straight
line between two points. There is no road routing.
"""

from math import asin, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0

# (lat, lng) in degrees
Coordinates = tuple[float, float]


def great_circle_km(a: Coordinates, b: Coordinates) -> float:
    """Unrounded haversine distance in kilometers. NaN inputs give NaN."""
    lat1, lng1, lat2, lng2 = map(radians, (*a, *b))
    h = sin((lat2 - lat1) / 2) ** 2 + cos(lat1) * cos(lat2) * sin((lng2 - lng1) / 2) ** 2
    # Float drift can push h just past 1 near antipodes; min() keeps NaN as NaN
    return 2 * EARTH_RADIUS_KM * asin(sqrt(min(h, 1.0)))


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Distance between two points in kilometers, rounded to 2 decimals.

    This is the value stored on ride requests and shown to riders, so it is
    symmetric and exactly 0.0 for identical points.
    """
    return round(great_circle_km(a, b), 2)
