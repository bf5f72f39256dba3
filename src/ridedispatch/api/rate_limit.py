"""Per-client rate limits for rider polling and dispatch mutations."""

from opentelemetry import metrics
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ..settings import APISettings
from .models.common import ErrorResponse

meter = metrics.get_meter("ridedispatch")

rate_limit_hits = meter.create_counter(
    name="api_rate_limit_hits_total",
    description="Total API requests rejected by rate limiting",
    unit="1",
)

# Polling covers location heartbeats and nearby-request scans; mutations are
# everything that changes a ride or a rider's duty status.
_limits = {"poll": "120/minute", "mutation": "60/minute"}


def configure_rate_limits(settings: APISettings) -> None:
    _limits.update(poll=settings.poll_rate_limit, mutation=settings.mutation_rate_limit)


def poll_limit() -> str:
    return _limits["poll"]


def mutation_limit() -> str:
    return _limits["mutation"]


def client_key(request: Request) -> str:
    """Bucket by API key when one is sent, else by client address."""
    api_key = request.headers.get("X-API-Key")
    return f"key:{api_key}" if api_key else f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=client_key)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """429 in the dispatch error shape, with Retry-After set to the limit's window.

    slowapi's own handler is not used: its header injection needs
    SlowAPIMiddleware, which this app does not install.
    """
    rate_limit_hits.add(1, {"endpoint": request.url.path, "method": request.method})

    body = ErrorResponse(error="rate_limited", message=f"Rate limit exceeded: {exc.detail}")
    response = JSONResponse(status_code=429, content=body.model_dump())
    response.headers["retry-after"] = str(exc.limit.limit.get_expiry())
    return response
