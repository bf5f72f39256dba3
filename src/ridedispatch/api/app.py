"""FastAPI application factory for the dispatch core."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from ..core.exceptions import (
    ConflictError,
    DispatchError,
    InvalidTransitionError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from ..dispatch import DispatchService, RequestExpirySweeper
from ..settings import Settings, get_settings
from .middleware.correlation import CorrelationIdMiddleware
from .models.common import ErrorResponse
from .rate_limit import configure_rate_limits, limiter, rate_limit_exceeded_handler
from .routes import config, ride_requests, riders

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: list[tuple[type[DispatchError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidTransitionError, 409),
    (TransientError, 503),
]


def status_code_for(exc: DispatchError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def dispatch_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, DispatchError)
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=exc.code, message=exc.message, details=exc.details
        ).model_dump(),
    )


def create_app(service: DispatchService, settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application with injected dependencies.

    Args:
        service: DispatchService every route delegates to
        settings: Application settings; loaded from the environment when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Run the pending request sweeper while the app is serving."""
        sweeper: RequestExpirySweeper | None = None
        if service.settings.pending_request_ttl_seconds > 0:
            sweeper = RequestExpirySweeper(service)
            app.state.expiry_sweeper = sweeper
            await sweeper.start()
        yield
        if sweeper:
            await sweeper.stop()

    app = FastAPI(
        title="Ride Dispatch API",
        version="1.0.0",
        description="Rider presence, ride requests and race-safe assignment",
        lifespan=lifespan,
    )

    configure_rate_limits(settings.api)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DispatchError, dispatch_error_handler)

    # Set immediately (not in lifespan) so they're available for testing
    app.state.dispatch_service = service
    app.state.settings = settings

    origins = settings.cors.origins.split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(riders.router, prefix="/riders", tags=["riders"])
    app.include_router(ride_requests.router, prefix="/ride-requests", tags=["ride-requests"])
    app.include_router(config.router, prefix="/config", tags=["config"])

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint for monitoring (unauthenticated for infrastructure)."""
        return {"status": "healthy"}

    return app
