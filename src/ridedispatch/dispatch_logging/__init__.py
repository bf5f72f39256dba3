"""Logging configuration for the dispatch service."""

from .context import clear_fields, current_fields, log_context, log_ride_context
from .filters import ContextFilter, PIIFilter, mask_pii
from .formatters import DevFormatter, JSONFormatter
from .setup import setup_logging

__all__ = [
    "ContextFilter",
    "DevFormatter",
    "JSONFormatter",
    "PIIFilter",
    "clear_fields",
    "current_fields",
    "log_context",
    "log_ride_context",
    "mask_pii",
    "setup_logging",
]
