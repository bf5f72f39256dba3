"""Repository layer for database CRUD operations."""

from .presence_repository import PresenceRepository
from .response_repository import ResponseRepository
from .ride_request_repository import RideRequestRepository
from .vehicle_repository import VehicleRepository

__all__ = [
    "PresenceRepository",
    "ResponseRepository",
    "RideRequestRepository",
    "VehicleRepository",
]
