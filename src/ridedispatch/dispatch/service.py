"""Dispatch protocol operations for passenger and rider clients.

Each operation opens its own session and runs as one transaction. Status
changes are single conditional updates, so concurrent callers are ordered
by the database rather than by this process.
"""

import logging
import math
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session, sessionmaker

from ..core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..db.repositories import (
    PresenceRepository,
    ResponseRepository,
    RideRequestRepository,
    VehicleRepository,
)
from ..db.transaction import transaction
from ..db.utils import seconds_before, to_naive_utc, utc_now
from ..dispatch_logging import log_context, log_ride_context
from ..fare import FareCalculator
from ..geo import distance_km, recommended_radius_km
from ..matching import NearbyRequestsResult, NearbyRider, ProximityMatcher
from ..notifications import (
    CHANNEL_RIDE_UPDATES,
    CHANNEL_RIDER_UPDATES,
    Publisher,
    RideUpdateMessage,
    RiderUpdateMessage,
)
from ..presence import RiderPresence
from ..responses import TERMINAL_RESPONSES, ResponseRecord, RiderResponse
from ..ride_request import (
    CancellationActor,
    Location,
    RideRequest,
    RideStatus,
    predecessors_of,
)
from ..settings import DispatchSettings
from ..vehicles import FareTableEntry, RegisteredVehicle, VehicleType

logger = logging.getLogger(__name__)


class RiderStats(BaseModel):
    rider_id: str
    today_completed: int
    today_earnings: float
    weekly_completed: int
    weekly_earnings: float


class DispatchService:
    """Entry point for every dispatch operation.

    Args:
        session_maker: Factory for database sessions
        settings: Dispatch tuning (heartbeat window, radii, expiry)
        fare_calculator: Prices new requests; defaults to the standard fare table
        publisher: Optional notification publisher, called after commit
        clock: Returns the current time; naive values are taken as UTC
    """

    def __init__(
        self,
        session_maker: sessionmaker[Session],
        settings: DispatchSettings,
        fare_calculator: FareCalculator | None = None,
        publisher: Publisher | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session_maker = session_maker
        self.settings = settings
        self.fare_calculator = fare_calculator or FareCalculator()
        self.publisher = publisher
        self.clock = clock
        self.matcher = ProximityMatcher(
            heartbeat_window_seconds=settings.heartbeat_window_seconds,
            timezone=settings.timezone,
        )

    def _now(self) -> datetime:
        return to_naive_utc(self.clock())

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        with self.session_maker() as session, transaction(session):
            yield session

    # Rider presence

    def update_rider_status(
        self, rider_id: str, is_online: bool, is_available: bool
    ) -> RiderPresence:
        """Upsert the rider's duty flags.

        Availability is stored as ``is_available and is_online`` and stays
        false while the rider has a ride in progress.
        """
        rider_id = _require_id(rider_id, "rider_id")
        now = self._now()
        with log_context(rider_id=rider_id), self._unit_of_work() as session:
            presence_repo = PresenceRepository(session)
            presence_repo.set_status(rider_id, is_online, is_available, now)
            presence = presence_repo.get(rider_id)
            assert presence is not None

            if is_available and not presence.is_available:
                logger.info(
                    f"Rider {rider_id} availability held false "
                    f"(online={presence.is_online})"
                )

        self._publish(
            CHANNEL_RIDER_UPDATES,
            RiderUpdateMessage(
                rider_id=rider_id,
                is_online=presence.is_online,
                is_available=presence.is_available,
                timestamp=now.isoformat(),
            ).model_dump(),
        )
        return presence

    def update_rider_location(self, rider_id: str, lat: float, lng: float) -> bool:
        """Record a GPS fix. Returns False, changing nothing, for unknown riders."""
        rider_id = _require_id(rider_id, "rider_id")
        location = _parse_location({"lat": lat, "lng": lng}, "location")
        now = self._now()
        with self._unit_of_work() as session:
            updated = PresenceRepository(session).update_location(
                rider_id, location.lat, location.lng, now
            )
        if not updated:
            logger.info(f"Ignoring location update for rider {rider_id} without presence")
        return updated

    def get_rider_presence(self, rider_id: str) -> RiderPresence:
        with self._unit_of_work() as session:
            presence = PresenceRepository(session).get(rider_id)
        if presence is None:
            raise NotFoundError(
                f"Rider {rider_id} has no presence record", details={"rider_id": rider_id}
            )
        return presence

    def register_vehicle(
        self,
        rider_id: str,
        vehicle_type: str | VehicleType,
        model: str | None = None,
        plate_number: str | None = None,
    ) -> RegisteredVehicle:
        vehicle = RegisteredVehicle(
            rider_id=_require_id(rider_id, "rider_id"),
            vehicle_type=VehicleType.parse(vehicle_type),
            model=model,
            plate_number=plate_number,
        )
        with self._unit_of_work() as session:
            VehicleRepository(session).upsert(vehicle, self._now())
        logger.info(f"Rider {rider_id} registered vehicle {vehicle.vehicle_type.value}")
        return vehicle

    def list_vehicle_types(self) -> list[FareTableEntry]:
        return self.fare_calculator.list_entries()

    # Matching

    def get_nearby_requests(
        self, rider_id: str, radius_km: float | None = None
    ) -> NearbyRequestsResult:
        """Pending requests the rider could take, nearest first.

        A rider without a presence row or a registered vehicle gets an empty
        result rather than an error.
        """
        radius = self._search_radius(radius_km)
        now = self._now()
        with self._unit_of_work() as session:
            presence = PresenceRepository(session).get(rider_id)
            vehicle_type = VehicleRepository(session).get_vehicle_type(rider_id)
            if presence is None or vehicle_type is None:
                logger.debug(f"Rider {rider_id} cannot be matched: no presence or vehicle")
                return NearbyRequestsResult(
                    requests=[],
                    search_radius_km=radius,
                    recommended_radius_km=recommended_radius_km(self.matcher.local_hour(now)),
                )
            return self.matcher.find_nearby(
                session, rider_id, presence.location, vehicle_type, radius, now
            )

    def find_nearby_riders(
        self,
        lat: float,
        lng: float,
        radius_km: float | None = None,
        vehicle_type: str | VehicleType | None = None,
    ) -> list[NearbyRider]:
        """Online, available riders with a recent heartbeat near a point."""
        location = _parse_location({"lat": lat, "lng": lng}, "location")
        radius = self._search_radius(radius_km)
        parsed_type = VehicleType.parse(vehicle_type) if vehicle_type is not None else None
        with self._unit_of_work() as session:
            return self.matcher.find_nearby_riders(
                session, location.coordinates, radius, self._now(), parsed_type
            )

    def _search_radius(self, radius_km: float | None) -> float:
        if radius_km is None:
            return self.settings.default_search_radius_km
        if not (math.isfinite(radius_km) and radius_km > 0):
            raise ValidationError(
                "Search radius must be a positive number", details={"radius_km": radius_km}
            )
        return radius_km

    # Ride request lifecycle

    def create_ride_request(
        self,
        passenger_id: str,
        pickup: Location | dict[str, Any],
        dropoff: Location | dict[str, Any],
        vehicle_type: str | VehicleType,
    ) -> RideRequest:
        """Price and store a new pending request."""
        passenger_id = _require_id(passenger_id, "passenger_id")
        pickup_location = _parse_location(pickup, "pickup")
        dropoff_location = _parse_location(dropoff, "dropoff")
        parsed_type = VehicleType.parse(vehicle_type)

        distance = distance_km(pickup_location.coordinates, dropoff_location.coordinates)
        fare = self.fare_calculator.calculate(parsed_type, distance)

        request = RideRequest(
            id=str(uuid4()),
            passenger_id=passenger_id,
            pickup=pickup_location,
            dropoff=dropoff_location,
            vehicle_type=parsed_type,
            status=RideStatus.PENDING,
            estimated_fare=fare.total_fare,
            distance_km=distance,
            requested_at=self._now(),
        )
        with log_ride_context(request.id, passenger_id=passenger_id):
            with self._unit_of_work() as session:
                RideRequestRepository(session).create(request)
            logger.info(
                f"Ride request {request.id} created: {parsed_type.value}, "
                f"{distance} km, fare {fare.total_fare}"
            )
        self._notify(request)
        return request

    def accept_request(self, request_id: str, rider_id: str) -> RideRequest:
        """Claim a pending request for a rider.

        The request moves to accepted and the rider becomes unavailable in
        one transaction. Exactly one of any number of concurrent callers wins;
        the others get ConflictError. The rider must drive the requested
        vehicle class and must not have declined or timed out on the offer.
        """
        rider_id = _require_id(rider_id, "rider_id")
        now = self._now()
        with log_ride_context(request_id, rider_id=rider_id):
            with self._unit_of_work() as session:
                vehicle_type = VehicleRepository(session).get_vehicle_type(rider_id)
                if vehicle_type is None:
                    raise NotFoundError(
                        f"Rider {rider_id} has no registered vehicle",
                        details={"rider_id": rider_id},
                    )
                responses = ResponseRepository(session)
                previous = responses.get(request_id, rider_id)
                if previous is not None and previous.response in TERMINAL_RESPONSES:
                    raise InvalidTransitionError(
                        f"Rider {rider_id} already passed on ride request {request_id} "
                        f"({previous.response.value})",
                        details={"request_id": request_id, "response": previous.response.value},
                    )

                requests = RideRequestRepository(session)
                claimed = requests.transition(
                    request_id,
                    {RideStatus.PENDING},
                    RideStatus.ACCEPTED,
                    now,
                    require_vehicle_type=vehicle_type,
                    assigned_rider_id=rider_id,
                    accepted_at=now,
                )
                if not claimed:
                    current = requests.get(request_id)
                    if current is None:
                        raise _request_not_found(request_id)
                    wrong_class = current.vehicle_type != vehicle_type
                    if current.status == RideStatus.PENDING and wrong_class:
                        raise ValidationError(
                            f"Ride request {request_id} needs a {current.vehicle_type.value}, "
                            f"rider {rider_id} drives a {vehicle_type.value}",
                            details={
                                "request_id": request_id,
                                "vehicle_type": current.vehicle_type.value,
                                "rider_vehicle_type": vehicle_type.value,
                            },
                        )
                    logger.warning(
                        f"Rider {rider_id} lost request {request_id} "
                        f"(status {current.status.value})"
                    )
                    raise ConflictError(
                        f"Ride request {request_id} is no longer available",
                        details={"request_id": request_id, "status": current.status.value},
                    )

                presence_repo = PresenceRepository(session)
                if not presence_repo.claim_for_ride(rider_id):
                    presence = presence_repo.get(rider_id)
                    if presence is None:
                        raise NotFoundError(
                            f"Rider {rider_id} has no presence record",
                            details={"rider_id": rider_id},
                        )
                    raise InvalidTransitionError(
                        f"Rider {rider_id} is not online and available",
                        details={
                            "rider_id": rider_id,
                            "is_online": presence.is_online,
                            "is_available": presence.is_available,
                        },
                    )

                responses.record(request_id, rider_id, RiderResponse.ACCEPTED, now)
                accepted = requests.get(request_id)
                assert accepted is not None

            logger.info(f"Ride request {request_id} accepted by rider {rider_id}")
        self._notify(accepted)
        return accepted

    def decline_request(
        self, request_id: str, rider_id: str, response_time_seconds: int | None = None
    ) -> ResponseRecord:
        """Record that the rider passed on a request. Its status is unchanged."""
        return self._record_response(
            request_id, rider_id, RiderResponse.DECLINED, response_time_seconds
        )

    def mark_request_shown(self, request_id: str, rider_id: str) -> ResponseRecord:
        return self._record_response(request_id, rider_id, RiderResponse.SHOWN, None)

    def record_offer_timeout(
        self, request_id: str, rider_id: str, response_time_seconds: int | None = None
    ) -> ResponseRecord:
        return self._record_response(
            request_id, rider_id, RiderResponse.TIMEOUT, response_time_seconds
        )

    def _record_response(
        self,
        request_id: str,
        rider_id: str,
        response: RiderResponse,
        response_time_seconds: int | None,
    ) -> ResponseRecord:
        rider_id = _require_id(rider_id, "rider_id")
        if response_time_seconds is not None and response_time_seconds < 0:
            raise ValidationError(
                "Response time cannot be negative",
                details={"response_time_seconds": response_time_seconds},
            )
        with log_ride_context(request_id, rider_id=rider_id):
            with self._unit_of_work() as session:
                record = ResponseRepository(session).record(
                    request_id, rider_id, response, self._now(), response_time_seconds
                )
                if RideRequestRepository(session).get(request_id) is None:
                    raise _request_not_found(request_id)

            if record.response != response:
                logger.info(
                    f"Rider {rider_id} response {response.value} ignored, "
                    f"already {record.response.value}"
                )
            else:
                logger.info(f"Rider {rider_id} {response.value} request {request_id}")
        return record

    def mark_arrived(self, request_id: str, rider_id: str) -> RideRequest:
        return self._advance(request_id, rider_id, RideStatus.ARRIVED, "arrived_at")

    def start_trip(self, request_id: str, rider_id: str) -> RideRequest:
        return self._advance(request_id, rider_id, RideStatus.PICKED_UP, "picked_up_at")

    def complete_request(self, request_id: str, rider_id: str | None = None) -> RideRequest:
        """Finish a picked-up ride and hand the rider back to the pool if still online."""
        return self._advance(
            request_id, rider_id, RideStatus.COMPLETED, "completed_at", release_rider=True
        )

    def cancel_request(
        self,
        request_id: str,
        cancelled_by: CancellationActor = "passenger",
        reason: str | None = None,
        rider_id: str | None = None,
    ) -> RideRequest:
        """Cancel from any non-terminal status, releasing an assigned rider."""
        values = {"cancelled_by": cancelled_by, "cancellation_reason": reason}
        return self._advance(
            request_id,
            rider_id,
            RideStatus.CANCELLED,
            "cancelled_at",
            release_rider=True,
            unassign=True,
            **values,
        )

    def _advance(
        self,
        request_id: str,
        rider_id: str | None,
        new_status: RideStatus,
        timestamp_field: str,
        release_rider: bool = False,
        unassign: bool = False,
        **values: Any,
    ) -> RideRequest:
        now = self._now()
        expected = predecessors_of(new_status)

        with log_ride_context(request_id, rider_id=rider_id):
            with self._unit_of_work() as session:
                requests = RideRequestRepository(session)
                moved = requests.transition(
                    request_id,
                    expected,
                    new_status,
                    now,
                    require_rider_id=rider_id,
                    unassign=unassign,
                    **{timestamp_field: now},
                    **values,
                )
                current = requests.get(request_id)
                if current is None:
                    raise _request_not_found(request_id)
                if not moved:
                    raise _transition_rejected(current, new_status, rider_id)

                released = current.assigned_rider_id or current.cancelled_rider_id
                if release_rider and released:
                    PresenceRepository(session).release_from_ride(released)

            logger.info(f"Ride request {request_id} {new_status.value}")
        self._notify(current)
        return current

    def expire_stale_requests(self) -> list[str]:
        """Cancel pending requests older than the configured TTL.

        Returns the ids that this call expired.
        """
        ttl = self.settings.pending_request_ttl_seconds
        if ttl <= 0:
            return []

        now = self._now()
        cutoff = seconds_before(now, ttl)
        expired: list[RideRequest] = []
        with self._unit_of_work() as session:
            requests = RideRequestRepository(session)
            for request_id in requests.list_pending_requested_before(cutoff):
                if requests.transition(
                    request_id,
                    {RideStatus.PENDING},
                    RideStatus.CANCELLED,
                    now,
                    cancelled_at=now,
                    cancelled_by="system",
                    cancellation_reason="expired",
                ):
                    request = requests.get(request_id)
                    assert request is not None
                    expired.append(request)

        for request in expired:
            with log_ride_context(request.id, passenger_id=request.passenger_id):
                logger.info(f"Ride request {request.id} expired after {ttl}s pending")
            self._notify(request)
        return [r.id for r in expired]

    # Queries

    def get_ride_request(self, request_id: str) -> RideRequest:
        with self._unit_of_work() as session:
            request = RideRequestRepository(session).get(request_id)
        if request is None:
            raise _request_not_found(request_id)
        return request

    def get_active_request(self, passenger_id: str) -> RideRequest | None:
        """The passenger's open request, or one completed within the recent window."""
        now = self._now()
        since = seconds_before(now, self.settings.recently_completed_window_seconds)
        with self._unit_of_work() as session:
            return RideRequestRepository(session).find_active_for_passenger(passenger_id, since)

    def get_rider_active_ride(self, rider_id: str) -> RideRequest | None:
        with self._unit_of_work() as session:
            return RideRequestRepository(session).find_in_progress_for_rider(rider_id)

    def get_passenger_history(
        self,
        passenger_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[RideRequest]:
        start = to_naive_utc(start) if start else None
        end = to_naive_utc(end) if end else None
        if start and end and start > end:
            raise ValidationError(
                "History window start is after its end",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        with self._unit_of_work() as session:
            return RideRequestRepository(session).list_history_for_passenger(
                passenger_id, start, end
            )

    def get_rider_history(self, rider_id: str) -> list[RideRequest]:
        with self._unit_of_work() as session:
            return RideRequestRepository(session).list_for_rider(
                rider_id, self.settings.history_limit
            )

    def get_rider_stats(self, rider_id: str) -> RiderStats:
        """Completed rides and earnings for the local day and the last seven days."""
        now = self._now()
        local_now = now.replace(tzinfo=UTC).astimezone(self.matcher.timezone)
        local_midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        today_start = to_naive_utc(local_midnight)
        week_start = now - timedelta(days=7)

        with self._unit_of_work() as session:
            requests = RideRequestRepository(session)
            today_count, today_total = requests.completed_totals(rider_id, today_start)
            week_count, week_total = requests.completed_totals(rider_id, week_start)

        return RiderStats(
            rider_id=rider_id,
            today_completed=today_count,
            today_earnings=today_total,
            weekly_completed=week_count,
            weekly_earnings=week_total,
        )

    # Notifications

    def _notify(self, request: RideRequest) -> None:
        message = RideUpdateMessage(
            event_type=request.status.to_event_type(),
            request_id=request.id,
            status=request.status.value,
            passenger_id=request.passenger_id,
            rider_id=request.assigned_rider_id or request.cancelled_rider_id,
            vehicle_type=request.vehicle_type.value,
            estimated_fare=request.estimated_fare,
            cancelled_by=request.cancelled_by,
            timestamp=self._now().isoformat(),
        )
        self._publish(CHANNEL_RIDE_UPDATES, message.model_dump())

    def _publish(self, channel: str, message: dict[str, Any]) -> None:
        if self.publisher is None:
            return
        self.publisher.publish_sync(channel, message)


def _require_id(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={field: value})
    return value


def _parse_location(value: Location | dict[str, Any], field: str) -> Location:
    if isinstance(value, Location):
        return value
    try:
        return Location.model_validate(value)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {field} coordinates",
            details={
                field: exc.errors(include_url=False, include_context=False, include_input=False)
            },
        ) from exc


def _request_not_found(request_id: str) -> NotFoundError:
    return NotFoundError(
        f"Ride request {request_id} not found", details={"request_id": request_id}
    )


def _transition_rejected(
    current: RideRequest, new_status: RideStatus, rider_id: str | None
) -> InvalidTransitionError:
    details: dict[str, Any] = {
        "request_id": current.id,
        "status": current.status.value,
        "target_status": new_status.value,
    }
    if rider_id is not None and not current.is_terminal and current.assigned_rider_id != rider_id:
        return InvalidTransitionError(
            f"Ride request {current.id} is not assigned to rider {rider_id}",
            details=details,
        )
    return InvalidTransitionError(
        f"Cannot move ride request {current.id} from {current.status.value} "
        f"to {new_status.value}",
        details=details,
    )
