"""Ride request lifecycle states and models."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .geo.distance import Coordinates
from .vehicles import VehicleType


class RideStatus(str, Enum):
    """Ride request lifecycle states."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    ARRIVED = "arrived"
    PICKED_UP = "picked_up"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Kept for stored records; no transition produces it
    DECLINED = "declined"

    def to_event_type(self) -> str:
        """Convert status to a notification event type (e.g., 'ride.accepted')."""
        return f"ride.{self.value}"


# Statuses in which a rider is assigned and serving the request
IN_PROGRESS_STATUSES = frozenset({RideStatus.ACCEPTED, RideStatus.ARRIVED, RideStatus.PICKED_UP})
OPEN_STATUSES = IN_PROGRESS_STATUSES | {RideStatus.PENDING}
TERMINAL_STATUSES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED, RideStatus.DECLINED})

VALID_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.PENDING: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {RideStatus.ARRIVED, RideStatus.CANCELLED},
    RideStatus.ARRIVED: {RideStatus.PICKED_UP, RideStatus.CANCELLED},
    RideStatus.PICKED_UP: {RideStatus.COMPLETED, RideStatus.CANCELLED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
    RideStatus.DECLINED: set(),
}

CancellationActor = Literal["passenger", "rider", "system"]


def predecessors_of(status: RideStatus) -> set[RideStatus]:
    """Statuses from which ``status`` can be reached in one step."""
    return {source for source, targets in VALID_TRANSITIONS.items() if status in targets}


class Location(BaseModel):
    """A labelled point, e.g. a pickup or dropoff."""

    label: str = ""
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(ge=-180, le=180, allow_inf_nan=False)

    @property
    def coordinates(self) -> Coordinates:
        return (self.lat, self.lng)


class RideRequest(BaseModel):
    """A passenger's ride request and its lifecycle state."""

    id: str
    passenger_id: str
    pickup: Location
    dropoff: Location
    vehicle_type: VehicleType
    status: RideStatus = Field(default=RideStatus.PENDING)
    assigned_rider_id: str | None = None
    # Rider who held the request when it was cancelled
    cancelled_rider_id: str | None = None
    estimated_fare: float
    distance_km: float
    requested_at: datetime | None = None
    accepted_at: datetime | None = None
    arrived_at: datetime | None = None
    picked_up_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_by: CancellationActor | None = None
    cancellation_reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status: RideStatus) -> bool:
        return new_status in VALID_TRANSITIONS[self.status]
