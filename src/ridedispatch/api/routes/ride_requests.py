from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request

from ...ride_request import RideRequest
from ..auth import verify_api_key
from ..dependencies import DispatchServiceDep
from ..models.rides import (
    ActiveRideResponse,
    CreateRideRequestBody,
    CreateRideRequestResponse,
    RiderActionBody,
)
from ..rate_limit import limiter, mutation_limit, poll_limit

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("", response_model=CreateRideRequestResponse, status_code=201)
@limiter.limit(mutation_limit)
def create_ride_request(
    request: Request,
    body: CreateRideRequestBody,
    service: DispatchServiceDep,
) -> CreateRideRequestResponse:
    ride = service.create_ride_request(
        passenger_id=body.passenger_id,
        pickup=body.pickup.model_dump(),
        dropoff=body.dropoff.model_dump(),
        vehicle_type=body.vehicle_type,
    )
    return CreateRideRequestResponse(
        request_id=ride.id,
        estimated_fare=ride.estimated_fare,
        distance_km=ride.distance_km,
        status=ride.status.value,
    )


@router.get("/active/{passenger_id}", response_model=ActiveRideResponse)
@limiter.limit(poll_limit)
def get_active_request(
    request: Request, passenger_id: str, service: DispatchServiceDep
) -> ActiveRideResponse:
    """The passenger's current ride, including one completed moments ago."""
    return ActiveRideResponse(request=service.get_active_request(passenger_id))


@router.get("/history/{passenger_id}", response_model=list[RideRequest])
@limiter.limit(poll_limit)
def get_passenger_history(
    request: Request,
    passenger_id: str,
    service: DispatchServiceDep,
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
) -> list[RideRequest]:
    return service.get_passenger_history(passenger_id, start, end)


@router.get("/{request_id}", response_model=RideRequest)
@limiter.limit(poll_limit)
def get_ride_request(
    request: Request, request_id: str, service: DispatchServiceDep
) -> RideRequest:
    return service.get_ride_request(request_id)


@router.delete("/{request_id}", response_model=RideRequest)
@limiter.limit(mutation_limit)
def cancel_ride_request(
    request: Request,
    request_id: str,
    service: DispatchServiceDep,
    reason: str | None = Query(default=None, max_length=200),
) -> RideRequest:
    """Passenger cancellation, allowed until the ride completes."""
    return service.cancel_request(request_id, cancelled_by="passenger", reason=reason)


@router.post("/{request_id}/arrived", response_model=RideRequest)
@limiter.limit(mutation_limit)
def mark_arrived(
    request: Request,
    request_id: str,
    body: RiderActionBody,
    service: DispatchServiceDep,
) -> RideRequest:
    return service.mark_arrived(request_id, body.rider_id)


@router.post("/{request_id}/start-trip", response_model=RideRequest)
@limiter.limit(mutation_limit)
def start_trip(
    request: Request,
    request_id: str,
    body: RiderActionBody,
    service: DispatchServiceDep,
) -> RideRequest:
    return service.start_trip(request_id, body.rider_id)


@router.post("/{request_id}/complete", response_model=RideRequest)
@limiter.limit(mutation_limit)
def complete_ride(
    request: Request,
    request_id: str,
    body: RiderActionBody,
    service: DispatchServiceDep,
) -> RideRequest:
    return service.complete_request(request_id, body.rider_id)
