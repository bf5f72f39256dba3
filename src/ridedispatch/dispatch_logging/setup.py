"""Root logger configuration for the dispatch service."""

import logging
import sys

from ..core.correlation import CorrelationFilter
from .filters import ContextFilter, PIIFilter
from .formatters import DevFormatter, JSONFormatter

# Per-statement and per-request chatter that drowns out dispatch events at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    environment: str = "development",
) -> logging.Handler:
    """Send all records through one stdout handler carrying the dispatch filters."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(environment) if json_output else DevFormatter())
    for log_filter in (PIIFilter(), CorrelationFilter(), ContextFilter()):
        handler.addFilter(log_filter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
