"""Pub/sub channel definitions and message schemas for the notification service."""

from pydantic import BaseModel

# Channel names
CHANNEL_RIDE_UPDATES = "ride-updates"
CHANNEL_RIDER_UPDATES = "rider-updates"

ALL_CHANNELS = [
    CHANNEL_RIDE_UPDATES,
    CHANNEL_RIDER_UPDATES,
]


class RideUpdateMessage(BaseModel):
    """Ride request state change."""

    event_type: str
    request_id: str
    status: str
    passenger_id: str
    rider_id: str | None
    vehicle_type: str
    estimated_fare: float
    cancelled_by: str | None = None
    timestamp: str


class RiderUpdateMessage(BaseModel):
    """Rider duty status change."""

    rider_id: str
    is_online: bool
    is_available: bool
    timestamp: str
