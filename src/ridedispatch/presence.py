"""Rider presence model."""

from datetime import datetime

from pydantic import BaseModel

from .geo.distance import Coordinates

# Used when a rider toggles duty before their first GPS fix (Colombo Fort)
PLACEHOLDER_LOCATION: Coordinates = (6.9271, 79.8612)


class RiderPresence(BaseModel):
    """Latest known location and duty flags of one rider."""

    rider_id: str
    location: Coordinates
    is_online: bool
    is_available: bool
    location_reported: bool = False
    last_updated: datetime
