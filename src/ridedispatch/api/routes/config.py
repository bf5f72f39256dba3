from fastapi import APIRouter, Depends, Request

from ...vehicles import FareTableEntry
from ..auth import verify_api_key
from ..dependencies import DispatchServiceDep
from ..rate_limit import limiter, poll_limit

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/vehicle-types", response_model=list[FareTableEntry])
@limiter.limit(poll_limit)
def list_vehicle_types(request: Request, service: DispatchServiceDep) -> list[FareTableEntry]:
    """Vehicle classes with their fares and default ETAs."""
    return service.list_vehicle_types()
