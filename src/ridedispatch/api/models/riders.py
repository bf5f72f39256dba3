from datetime import datetime

from pydantic import BaseModel, Field

from ...presence import RiderPresence


class RiderStatusUpdate(BaseModel):
    is_online: bool
    is_available: bool


class RiderLocationUpdate(BaseModel):
    # Range checks happen in the service so they surface as validation errors
    lat: float
    lng: float


class LocationUpdateResponse(BaseModel):
    updated: bool


class PresenceResponse(BaseModel):
    rider_id: str
    lat: float
    lng: float
    is_online: bool
    is_available: bool
    location_reported: bool
    last_updated: datetime

    @classmethod
    def from_presence(cls, presence: RiderPresence) -> "PresenceResponse":
        lat, lng = presence.location
        return cls(
            rider_id=presence.rider_id,
            lat=lat,
            lng=lng,
            is_online=presence.is_online,
            is_available=presence.is_available,
            location_reported=presence.location_reported,
            last_updated=presence.last_updated,
        )


class VehicleRegistrationRequest(BaseModel):
    vehicle_type: str
    model: str | None = None
    plate_number: str | None = None


class OfferResponseRequest(BaseModel):
    response_time_seconds: int | None = Field(default=None, ge=0)
