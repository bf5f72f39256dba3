"""Ride request repository: conditional status transitions and lookups."""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import and_, exists, func, or_, select, update
from sqlalchemy.orm import Session

from ...ride_request import (
    IN_PROGRESS_STATUSES,
    OPEN_STATUSES,
    Location,
    RideStatus,
)
from ...ride_request import RideRequest as RideRequestDomain
from ...vehicles import VehicleType
from ..schema import RideRequest, RideRequestResponse
from ..utils import utc_now

OPEN_PASSENGER_VALUES = [s.value for s in OPEN_STATUSES]
HISTORY_VALUES = [RideStatus.COMPLETED.value, RideStatus.CANCELLED.value]


class RideRequestRepository:
    """Repository for ride request CRUD operations with state tracking."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, request: RideRequestDomain) -> None:
        """Insert a new request exactly as given."""
        requested_at = request.requested_at or utc_now()
        self.session.add(
            RideRequest(
                id=request.id,
                passenger_id=request.passenger_id,
                pickup_label=request.pickup.label,
                pickup_lat=request.pickup.lat,
                pickup_lng=request.pickup.lng,
                dropoff_label=request.dropoff.label,
                dropoff_lat=request.dropoff.lat,
                dropoff_lng=request.dropoff.lng,
                vehicle_type=request.vehicle_type.value,
                status=request.status.value,
                assigned_rider_id=request.assigned_rider_id,
                cancelled_rider_id=request.cancelled_rider_id,
                estimated_fare=request.estimated_fare,
                distance_km=request.distance_km,
                cancelled_by=request.cancelled_by,
                cancellation_reason=request.cancellation_reason,
                requested_at=requested_at,
                accepted_at=request.accepted_at,
                arrived_at=request.arrived_at,
                picked_up_at=request.picked_up_at,
                completed_at=request.completed_at,
                cancelled_at=request.cancelled_at,
                updated_at=requested_at,
            )
        )
        self.session.flush()

    def get(self, request_id: str) -> RideRequestDomain | None:
        """Get request by ID, always re-reading the stored row."""
        row = self.session.get(RideRequest, request_id, populate_existing=True)
        if row is None:
            return None
        return self._to_domain(row)

    def transition(
        self,
        request_id: str,
        expected: Iterable[RideStatus],
        new_status: RideStatus,
        now: datetime,
        require_rider_id: str | None = None,
        require_vehicle_type: VehicleType | None = None,
        unassign: bool = False,
        **values: Any,
    ) -> bool:
        """Move a request to ``new_status`` only if it is currently in ``expected``.

        When ``require_rider_id`` is given the row must also be assigned to
        that rider, and ``require_vehicle_type`` restricts the vehicle class.
        ``unassign`` moves the assigned rider into ``cancelled_rider_id``.
        Extra keyword arguments are written alongside the status.
        Returns True when exactly one row changed.
        """
        conditions = [
            RideRequest.id == request_id,
            RideRequest.status.in_([s.value for s in expected]),
        ]
        if require_rider_id is not None:
            conditions.append(RideRequest.assigned_rider_id == require_rider_id)
        if require_vehicle_type is not None:
            conditions.append(RideRequest.vehicle_type == require_vehicle_type.value)
        if unassign:
            # SET expressions read the row as it was before the update
            values.update(
                cancelled_rider_id=RideRequest.assigned_rider_id, assigned_rider_id=None
            )

        stmt = (
            update(RideRequest)
            .where(*conditions)
            .values(status=new_status.value, updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def list_pending_for_rider(
        self, vehicle_type: VehicleType, rider_id: str
    ) -> list[RideRequestDomain]:
        """Unassigned pending requests of one vehicle class this rider has no ledger row for."""
        responded = exists().where(
            RideRequestResponse.request_id == RideRequest.id,
            RideRequestResponse.rider_id == rider_id,
        )
        stmt = (
            select(RideRequest)
            .where(
                RideRequest.status == RideStatus.PENDING.value,
                RideRequest.assigned_rider_id.is_(None),
                RideRequest.vehicle_type == vehicle_type.value,
                ~responded,
            )
            .order_by(RideRequest.requested_at)
        )
        result = self.session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()]

    def list_pending_requested_before(self, cutoff: datetime) -> list[str]:
        stmt = select(RideRequest.id).where(
            RideRequest.status == RideStatus.PENDING.value,
            RideRequest.requested_at < cutoff,
        )
        return list(self.session.execute(stmt).scalars().all())

    def find_active_for_passenger(
        self, passenger_id: str, completed_since: datetime
    ) -> RideRequestDomain | None:
        """Newest open request, or one completed at or after ``completed_since``."""
        stmt = (
            select(RideRequest)
            .where(
                RideRequest.passenger_id == passenger_id,
                or_(
                    RideRequest.status.in_(OPEN_PASSENGER_VALUES),
                    and_(
                        RideRequest.status == RideStatus.COMPLETED.value,
                        RideRequest.completed_at >= completed_since,
                    ),
                ),
            )
            .order_by(RideRequest.requested_at.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).scalars().first()
        return self._to_domain(row) if row else None

    def find_in_progress_for_rider(self, rider_id: str) -> RideRequestDomain | None:
        stmt = (
            select(RideRequest)
            .where(
                RideRequest.assigned_rider_id == rider_id,
                RideRequest.status.in_([s.value for s in IN_PROGRESS_STATUSES]),
            )
            .order_by(RideRequest.accepted_at.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).scalars().first()
        return self._to_domain(row) if row else None

    def list_history_for_passenger(
        self,
        passenger_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[RideRequestDomain]:
        """Completed and cancelled requests, newest first, optionally windowed on requested_at."""
        stmt = select(RideRequest).where(
            RideRequest.passenger_id == passenger_id,
            RideRequest.status.in_(HISTORY_VALUES),
        )
        if start is not None:
            stmt = stmt.where(RideRequest.requested_at >= start)
        if end is not None:
            stmt = stmt.where(RideRequest.requested_at <= end)
        stmt = stmt.order_by(RideRequest.requested_at.desc())

        result = self.session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()]

    def list_for_rider(self, rider_id: str, limit: int) -> list[RideRequestDomain]:
        stmt = (
            select(RideRequest)
            .where(
                or_(
                    RideRequest.assigned_rider_id == rider_id,
                    RideRequest.cancelled_rider_id == rider_id,
                )
            )
            .order_by(RideRequest.requested_at.desc())
            .limit(limit)
        )
        result = self.session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()]

    def completed_totals(self, rider_id: str, since: datetime) -> tuple[int, float]:
        """Count and fare sum of the rider's requests completed at or after ``since``."""
        stmt = select(
            func.count(RideRequest.id),
            func.coalesce(func.sum(RideRequest.estimated_fare), 0.0),
        ).where(
            RideRequest.assigned_rider_id == rider_id,
            RideRequest.status == RideStatus.COMPLETED.value,
            RideRequest.completed_at >= since,
        )
        count, total = self.session.execute(stmt).one()
        return int(count), float(total)

    def _to_domain(self, row: RideRequest) -> RideRequestDomain:
        """Convert ORM model to domain model."""
        return RideRequestDomain(
            id=row.id,
            passenger_id=row.passenger_id,
            pickup=Location(label=row.pickup_label, lat=row.pickup_lat, lng=row.pickup_lng),
            dropoff=Location(label=row.dropoff_label, lat=row.dropoff_lat, lng=row.dropoff_lng),
            vehicle_type=VehicleType(row.vehicle_type),
            status=RideStatus(row.status),
            assigned_rider_id=row.assigned_rider_id,
            cancelled_rider_id=row.cancelled_rider_id,
            estimated_fare=row.estimated_fare,
            distance_km=row.distance_km,
            requested_at=row.requested_at,
            accepted_at=row.accepted_at,
            arrived_at=row.arrived_at,
            picked_up_at=row.picked_up_at,
            completed_at=row.completed_at,
            cancelled_at=row.cancelled_at,
            cancelled_by=row.cancelled_by,
            cancellation_reason=row.cancellation_reason,
        )
