"""Standardized exception hierarchy for the dispatch core."""

from typing import Any


class DispatchError(Exception):
    """Base exception for all dispatch errors."""

    code = "dispatch_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(DispatchError):
    """Errors that may succeed on retry."""

    code = "transient_error"


class PersistenceError(TransientError):
    """The data store could not complete the operation."""

    code = "persistence_error"


class ServiceUnavailableError(TransientError):
    """A collaborating service is temporarily unavailable."""

    code = "service_unavailable"


class PermanentError(DispatchError):
    """Errors that will not succeed on retry."""

    code = "permanent_error"


class ValidationError(PermanentError):
    """Malformed or missing input; nothing was changed."""

    code = "validation_error"


class NotFoundError(PermanentError):
    """Referenced ride request or rider does not exist."""

    code = "not_found"


class ConflictError(PermanentError):
    """Lost the race to accept a request.

    The caller must discard its local copy of the request and resume polling.
    """

    code = "conflict"


class InvalidTransitionError(PermanentError):
    """Operation not allowed from the request's current status."""

    code = "invalid_transition"


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    code = "configuration_error"
