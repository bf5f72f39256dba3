"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from ..dispatch import DispatchService


def get_dispatch_service(request: Request) -> DispatchService:
    """Retrieve the DispatchService from app state."""
    service: DispatchService = request.app.state.dispatch_service
    return service


DispatchServiceDep = Annotated[DispatchService, Depends(get_dispatch_service)]
