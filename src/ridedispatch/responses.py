"""Rider responses to ride request offers."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class RiderResponse(str, Enum):
    SHOWN = "shown"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    TIMEOUT = "timeout"


# Once recorded, the request is never offered to that rider again
TERMINAL_RESPONSES = frozenset({RiderResponse.DECLINED, RiderResponse.TIMEOUT})


class ResponseRecord(BaseModel):
    """One rider's latest response to one ride request."""

    request_id: str
    rider_id: str
    response: RiderResponse
    response_time_seconds: int | None = None
    created_at: datetime
    updated_at: datetime
