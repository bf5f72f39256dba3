"""HTTP surface of the dispatch core."""

from .app import create_app

__all__ = ["create_app"]
