"""Advisory search radius policy.

The recommended radius is surfaced to rider clients next to their poll
results as a suggestion for the next poll. It never filters the proximity
matcher's own query.
"""

from dataclasses import dataclass

from .distance import great_circle_km

BASE_RADIUS_KM = 3
PEAK_RADIUS_KM = 5
MIN_RADIUS_KM = BASE_RADIUS_KM
MAX_RADIUS_KM = 10

# Inclusive hour ranges (07:00-09:59 and 17:00-20:59)
PEAK_HOURS = ((7, 9), (17, 20))

LOW_SUPPLY_THRESHOLD = 5
MODERATE_SUPPLY_THRESHOLD = 10
LOW_SUPPLY_EXTRA_KM = 2
MODERATE_SUPPLY_EXTRA_KM = 1
NON_URBAN_EXTRA_KM = 3


@dataclass(frozen=True)
class UrbanCenter:
    name: str
    lat: float
    lng: float
    radius_km: float


MAJOR_CITIES: tuple[UrbanCenter, ...] = (
    UrbanCenter("Colombo", 6.9271, 79.8612, 15),
    UrbanCenter("Kandy", 7.2906, 80.6337, 10),
    UrbanCenter("Galle", 6.0535, 80.2210, 8),
    UrbanCenter("Jaffna", 9.6615, 80.0255, 8),
    UrbanCenter("Negombo", 7.2008, 79.8736, 5),
)


def is_peak_hour(hour_of_day: int) -> bool:
    return any(start <= hour_of_day <= end for start, end in PEAK_HOURS)


def recommended_radius_km(
    hour_of_day: int,
    available_rider_count: int = 10,
    is_urban: bool = True,
) -> int:
    """Suggested search radius in kilometers, always within [3, 10].

    Args:
        hour_of_day: Local hour, 0-23
        available_rider_count: Number of available riders near the caller
        is_urban: Whether the caller is inside a major city's catchment

    Returns:
        Radius in whole kilometers
    """
    radius = PEAK_RADIUS_KM if is_peak_hour(hour_of_day) else BASE_RADIUS_KM

    if available_rider_count < LOW_SUPPLY_THRESHOLD:
        radius += LOW_SUPPLY_EXTRA_KM
    elif available_rider_count < MODERATE_SUPPLY_THRESHOLD:
        radius += MODERATE_SUPPLY_EXTRA_KM

    if not is_urban:
        radius += NON_URBAN_EXTRA_KM

    return min(radius, MAX_RADIUS_KM)


def is_urban_area(lat: float, lng: float, cities: tuple[UrbanCenter, ...] = MAJOR_CITIES) -> bool:
    """True if the point lies within the catchment of one of the major cities."""
    return any(
        great_circle_km((lat, lng), (city.lat, city.lng)) <= city.radius_km for city in cities
    )
