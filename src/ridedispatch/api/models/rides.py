from pydantic import BaseModel, Field

from ...ride_request import RideRequest


class LocationIn(BaseModel):
    label: str = ""
    lat: float
    lng: float


class CreateRideRequestBody(BaseModel):
    passenger_id: str = Field(min_length=1)
    pickup: LocationIn
    dropoff: LocationIn
    vehicle_type: str


class CreateRideRequestResponse(BaseModel):
    request_id: str
    estimated_fare: float
    distance_km: float
    status: str


class RiderActionBody(BaseModel):
    rider_id: str = Field(min_length=1)


class ActiveRideResponse(BaseModel):
    request: RideRequest | None
