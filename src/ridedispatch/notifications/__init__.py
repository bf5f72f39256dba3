"""Best-effort publication of dispatch events."""

from .channels import (
    ALL_CHANNELS,
    CHANNEL_RIDE_UPDATES,
    CHANNEL_RIDER_UPDATES,
    RideUpdateMessage,
    RiderUpdateMessage,
)
from .publisher import Publisher, RedisPublisher

__all__ = [
    "ALL_CHANNELS",
    "CHANNEL_RIDE_UPDATES",
    "CHANNEL_RIDER_UPDATES",
    "Publisher",
    "RedisPublisher",
    "RideUpdateMessage",
    "RiderUpdateMessage",
]
