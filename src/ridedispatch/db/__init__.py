"""Database persistence module."""

from .database import init_database
from .schema import Base, DispatchMetadata, RideRequest, RideRequestResponse, RiderLocation, Vehicle
from .transaction import savepoint, transaction
from .utils import utc_now

__all__ = [
    "Base",
    "DispatchMetadata",
    "RideRequest",
    "RideRequestResponse",
    "RiderLocation",
    "Vehicle",
    "init_database",
    "savepoint",
    "transaction",
    "utc_now",
]
