"""Proximity matching of pending ride requests and available riders."""

import logging
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db.repositories import PresenceRepository, RideRequestRepository
from ..db.utils import seconds_before
from ..geo import Coordinates, distance_km, is_urban_area, recommended_radius_km
from ..ride_request import RideRequest
from ..vehicles import VehicleType

logger = logging.getLogger(__name__)


class NearbyRequest(BaseModel):
    request: RideRequest
    distance_from_rider_km: float


class NearbyRequestsResult(BaseModel):
    """Poll result for one rider plus the suggested radius for the next poll."""

    requests: list[NearbyRequest]
    search_radius_km: float
    recommended_radius_km: int


class NearbyRider(BaseModel):
    rider_id: str
    location: Coordinates
    vehicle_type: VehicleType
    distance_km: float
    last_updated: datetime


class ProximityMatcher:
    """Read-only matcher over the request store, presence registry and ledger.

    Nothing here writes; offers are recorded in the ledger only when the
    rider client reports them.
    """

    def __init__(self, heartbeat_window_seconds: int, timezone: str = "UTC") -> None:
        self.heartbeat_window_seconds = heartbeat_window_seconds
        self.timezone = ZoneInfo(timezone)

    def local_hour(self, now: datetime) -> int:
        """Hour of day in the configured zone for a naive UTC ``now``."""
        return now.replace(tzinfo=UTC).astimezone(self.timezone).hour

    def find_nearby(
        self,
        session: Session,
        rider_id: str,
        rider_location: Coordinates,
        vehicle_type: VehicleType,
        radius_km: float,
        now: datetime,
    ) -> NearbyRequestsResult:
        """Pending requests of the rider's class within ``radius_km``, nearest first.

        Requests the rider already has any ledger entry for are skipped.
        """
        candidates = RideRequestRepository(session).list_pending_for_rider(vehicle_type, rider_id)

        matches = []
        for request in candidates:
            distance = distance_km(rider_location, request.pickup.coordinates)
            if distance <= radius_km:
                matches.append(NearbyRequest(request=request, distance_from_rider_km=distance))
        matches.sort(key=lambda m: m.distance_from_rider_km)

        advisory = self.advisory_radius(session, rider_location, radius_km, now, rider_id)
        logger.debug(
            f"Rider {rider_id} poll: {len(matches)} of {len(candidates)} pending "
            f"{vehicle_type.value} requests within {radius_km} km"
        )
        return NearbyRequestsResult(
            requests=matches,
            search_radius_km=radius_km,
            recommended_radius_km=advisory,
        )

    def advisory_radius(
        self,
        session: Session,
        location: Coordinates,
        radius_km: float,
        now: datetime,
        exclude_rider_id: str | None = None,
    ) -> int:
        """Suggested radius from local hour, nearby supply and urban classification."""
        nearby = self.find_nearby_riders(session, location, radius_km, now)
        available = sum(1 for r in nearby if r.rider_id != exclude_rider_id)
        return recommended_radius_km(
            self.local_hour(now),
            available_rider_count=available,
            is_urban=is_urban_area(*location),
        )

    def find_nearby_riders(
        self,
        session: Session,
        location: Coordinates,
        radius_km: float,
        now: datetime,
        vehicle_type: VehicleType | None = None,
    ) -> list[NearbyRider]:
        """Online, available riders with a fresh heartbeat within ``radius_km``.

        Riders silent for longer than the heartbeat window are dropped even if
        they never went offline.
        """
        fresh_since = seconds_before(now, self.heartbeat_window_seconds)
        available = PresenceRepository(session).list_available(fresh_since, vehicle_type)

        riders = []
        for presence, rider_vehicle in available:
            distance = distance_km(location, presence.location)
            if distance <= radius_km:
                riders.append(
                    NearbyRider(
                        rider_id=presence.rider_id,
                        location=presence.location,
                        vehicle_type=rider_vehicle,
                        distance_km=distance,
                        last_updated=presence.last_updated,
                    )
                )
        riders.sort(key=lambda r: r.distance_km)
        return riders
