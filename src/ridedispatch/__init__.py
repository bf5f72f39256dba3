"""Ride dispatch and matching core."""

__version__ = "0.1.0"
