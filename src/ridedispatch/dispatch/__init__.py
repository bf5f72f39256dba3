"""Dispatch protocol handlers."""

from .expiry import RequestExpirySweeper
from .service import DispatchService, RiderStats

__all__ = ["DispatchService", "RequestExpirySweeper", "RiderStats"]
