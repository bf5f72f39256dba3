"""Rider presence repository with compare-and-swap availability updates."""

from datetime import datetime

from sqlalchemy import and_, exists, not_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...presence import PLACEHOLDER_LOCATION
from ...presence import RiderPresence as PresenceDomain
from ...ride_request import IN_PROGRESS_STATUSES
from ...vehicles import VehicleType
from ..schema import RideRequest, RiderLocation, Vehicle
from ..transaction import savepoint

IN_PROGRESS_VALUES = [s.value for s in IN_PROGRESS_STATUSES]


class PresenceRepository:
    """Repository for the rider presence registry.

    Writes are single conditional UPDATE statements so heartbeats and
    dispatch transitions never overwrite each other's availability flag.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, rider_id: str) -> PresenceDomain | None:
        row = self.session.get(RiderLocation, rider_id, populate_existing=True)
        if row is None:
            return None
        return self._to_domain(row)

    def set_status(
        self, rider_id: str, is_online: bool, is_available: bool, now: datetime
    ) -> None:
        """Upsert duty flags, creating the row at a placeholder location if needed.

        Availability is stored as ``is_available AND is_online`` and is held
        false while the rider has an in-progress ride assigned.
        """
        wants_available = is_available and is_online
        if self._update_status(rider_id, is_online, wants_available, now):
            return

        lat, lng = PLACEHOLDER_LOCATION
        try:
            with savepoint(self.session):
                self.session.add(
                    RiderLocation(
                        rider_id=rider_id,
                        lat=lat,
                        lng=lng,
                        is_online=is_online,
                        is_available=wants_available,
                        last_updated=now,
                    )
                )
                self.session.flush()
        except IntegrityError:
            # Another call created the row first
            self._update_status(rider_id, is_online, wants_available, now)

    def _update_status(
        self, rider_id: str, is_online: bool, wants_available: bool, now: datetime
    ) -> bool:
        available_expr = False
        if wants_available:
            has_open_ride = exists().where(
                RideRequest.assigned_rider_id == rider_id,
                RideRequest.status.in_(IN_PROGRESS_VALUES),
            )
            available_expr = not_(has_open_ride)

        stmt = (
            update(RiderLocation)
            .where(RiderLocation.rider_id == rider_id)
            .values(is_online=is_online, is_available=available_expr, last_updated=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def update_location(self, rider_id: str, lat: float, lng: float, now: datetime) -> bool:
        """Move an existing rider. Returns False when the rider has no presence row."""
        stmt = (
            update(RiderLocation)
            .where(RiderLocation.rider_id == rider_id)
            .values(lat=lat, lng=lng, location_reported=True, last_updated=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def claim_for_ride(self, rider_id: str) -> bool:
        """Flip an online, available rider to unavailable. False if the swap failed."""
        stmt = (
            update(RiderLocation)
            .where(
                RiderLocation.rider_id == rider_id,
                RiderLocation.is_online.is_(True),
                RiderLocation.is_available.is_(True),
            )
            .values(is_available=False)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def release_from_ride(self, rider_id: str) -> bool:
        """Restore availability for a rider whose ride ended, if still online."""
        stmt = (
            update(RiderLocation)
            .where(RiderLocation.rider_id == rider_id)
            .values(is_available=RiderLocation.is_online)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def list_available(
        self, fresh_since: datetime, vehicle_type: VehicleType | None = None
    ) -> list[tuple[PresenceDomain, VehicleType]]:
        """Online, available riders heard from since ``fresh_since`` that have a vehicle.

        Riders still at the placeholder location are left out until their first GPS fix.
        """
        stmt = (
            select(RiderLocation, Vehicle.vehicle_type)
            .join(Vehicle, Vehicle.rider_id == RiderLocation.rider_id)
            .where(
                and_(
                    RiderLocation.is_online.is_(True),
                    RiderLocation.is_available.is_(True),
                    RiderLocation.location_reported.is_(True),
                    RiderLocation.last_updated >= fresh_since,
                )
            )
        )
        if vehicle_type is not None:
            stmt = stmt.where(Vehicle.vehicle_type == vehicle_type.value)

        result = self.session.execute(stmt)
        return [(self._to_domain(row), VehicleType(vt)) for row, vt in result.all()]

    def _to_domain(self, row: RiderLocation) -> PresenceDomain:
        return PresenceDomain(
            rider_id=row.rider_id,
            location=(row.lat, row.lng),
            is_online=row.is_online,
            is_available=row.is_available,
            location_reported=row.location_reported,
            last_updated=row.last_updated,
        )
