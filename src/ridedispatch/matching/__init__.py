"""Matching of pending ride requests to nearby riders."""

from .proximity_matcher import NearbyRequest, NearbyRequestsResult, NearbyRider, ProximityMatcher

__all__ = ["NearbyRequest", "NearbyRequestsResult", "NearbyRider", "ProximityMatcher"]
