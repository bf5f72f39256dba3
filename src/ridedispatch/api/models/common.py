from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every dispatch error response."""

    error: str
    message: str
    details: dict[str, Any] = {}
