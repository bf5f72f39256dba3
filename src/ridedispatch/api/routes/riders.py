from fastapi import APIRouter, Depends, Query, Request

from ...dispatch import RiderStats
from ...matching import NearbyRequestsResult, NearbyRider
from ...responses import ResponseRecord
from ...ride_request import RideRequest
from ...vehicles import RegisteredVehicle
from ..auth import verify_api_key
from ..dependencies import DispatchServiceDep
from ..models.riders import (
    LocationUpdateResponse,
    OfferResponseRequest,
    PresenceResponse,
    RiderLocationUpdate,
    RiderStatusUpdate,
    VehicleRegistrationRequest,
)
from ..models.rides import ActiveRideResponse
from ..rate_limit import limiter, mutation_limit, poll_limit

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/nearby", response_model=list[NearbyRider])
@limiter.limit(poll_limit)
def list_nearby_riders(
    request: Request,
    service: DispatchServiceDep,
    lat: float,
    lng: float,
    radius_km: float | None = Query(default=None),
    vehicle_type: str | None = Query(default=None),
) -> list[NearbyRider]:
    """Online, available riders near a passenger, excluding silent ones."""
    return service.find_nearby_riders(lat, lng, radius_km, vehicle_type)


@router.put("/{rider_id}/status", response_model=PresenceResponse)
@limiter.limit(mutation_limit)
def update_status(
    request: Request,
    rider_id: str,
    body: RiderStatusUpdate,
    service: DispatchServiceDep,
) -> PresenceResponse:
    presence = service.update_rider_status(rider_id, body.is_online, body.is_available)
    return PresenceResponse.from_presence(presence)


@router.put("/{rider_id}/location", response_model=LocationUpdateResponse)
@limiter.limit(poll_limit)
def update_location(
    request: Request,
    rider_id: str,
    body: RiderLocationUpdate,
    service: DispatchServiceDep,
) -> LocationUpdateResponse:
    updated = service.update_rider_location(rider_id, body.lat, body.lng)
    return LocationUpdateResponse(updated=updated)


@router.get("/{rider_id}/presence", response_model=PresenceResponse)
@limiter.limit(poll_limit)
def get_presence(request: Request, rider_id: str, service: DispatchServiceDep) -> PresenceResponse:
    return PresenceResponse.from_presence(service.get_rider_presence(rider_id))


@router.put("/{rider_id}/vehicle", response_model=RegisteredVehicle)
@limiter.limit(mutation_limit)
def register_vehicle(
    request: Request,
    rider_id: str,
    body: VehicleRegistrationRequest,
    service: DispatchServiceDep,
) -> RegisteredVehicle:
    return service.register_vehicle(rider_id, body.vehicle_type, body.model, body.plate_number)


@router.get("/{rider_id}/nearby-requests", response_model=NearbyRequestsResult)
@limiter.limit(poll_limit)
def get_nearby_requests(
    request: Request,
    rider_id: str,
    service: DispatchServiceDep,
    radius_km: float | None = Query(default=None),
) -> NearbyRequestsResult:
    """Pending requests this rider has not seen yet, plus a suggested radius."""
    return service.get_nearby_requests(rider_id, radius_km)


@router.post("/{rider_id}/requests/{request_id}/accept", response_model=RideRequest)
@limiter.limit(mutation_limit)
def accept_request(
    request: Request,
    rider_id: str,
    request_id: str,
    service: DispatchServiceDep,
) -> RideRequest:
    """Claim a pending request. A 409 means another rider got it first."""
    return service.accept_request(request_id, rider_id)


@router.post("/{rider_id}/requests/{request_id}/decline", response_model=ResponseRecord)
@limiter.limit(mutation_limit)
def decline_request(
    request: Request,
    rider_id: str,
    request_id: str,
    service: DispatchServiceDep,
    body: OfferResponseRequest | None = None,
) -> ResponseRecord:
    response_time = body.response_time_seconds if body else None
    return service.decline_request(request_id, rider_id, response_time)


@router.post("/{rider_id}/requests/{request_id}/shown", response_model=ResponseRecord)
@limiter.limit(mutation_limit)
def mark_shown(
    request: Request,
    rider_id: str,
    request_id: str,
    service: DispatchServiceDep,
) -> ResponseRecord:
    return service.mark_request_shown(request_id, rider_id)


@router.post("/{rider_id}/requests/{request_id}/timeout", response_model=ResponseRecord)
@limiter.limit(mutation_limit)
def record_timeout(
    request: Request,
    rider_id: str,
    request_id: str,
    service: DispatchServiceDep,
    body: OfferResponseRequest | None = None,
) -> ResponseRecord:
    response_time = body.response_time_seconds if body else None
    return service.record_offer_timeout(request_id, rider_id, response_time)


@router.get("/{rider_id}/active-ride", response_model=ActiveRideResponse)
@limiter.limit(poll_limit)
def get_active_ride(
    request: Request, rider_id: str, service: DispatchServiceDep
) -> ActiveRideResponse:
    return ActiveRideResponse(request=service.get_rider_active_ride(rider_id))


@router.get("/{rider_id}/history", response_model=list[RideRequest])
@limiter.limit(poll_limit)
def get_history(
    request: Request, rider_id: str, service: DispatchServiceDep
) -> list[RideRequest]:
    return service.get_rider_history(rider_id)


@router.get("/{rider_id}/stats", response_model=RiderStats)
@limiter.limit(poll_limit)
def get_stats(request: Request, rider_id: str, service: DispatchServiceDep) -> RiderStats:
    return service.get_rider_stats(rider_id)
