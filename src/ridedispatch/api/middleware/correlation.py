"""Correlation ID middleware for HTTP requests."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ...core.correlation import with_correlation

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Runs each request under the caller's correlation ID and echoes the one used."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with with_correlation(request.headers.get(CORRELATION_HEADER)) as correlation_id:
            response = await call_next(request)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
