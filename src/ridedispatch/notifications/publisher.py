import json
import logging
from typing import Any, Protocol

import redis
from opentelemetry import trace
from redis.exceptions import RedisError

from ..core.correlation import get_current_correlation_id
from ..settings import RedisSettings
from .channels import ALL_CHANNELS

logger = logging.getLogger(__name__)


_tracer = trace.get_tracer(__name__)


class Publisher(Protocol):
    def publish_sync(self, channel: str, message: dict[str, Any]) -> None: ...


class RedisPublisher:
    """Best-effort publisher of dispatch events on Redis pub/sub.

    A Redis outage never fails a dispatch operation: the error is recorded
    on the span and logged, and the event is dropped.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, settings: RedisSettings) -> "RedisPublisher":
        return cls(
            redis.Redis(
                host=settings.host,
                port=settings.port,
                db=settings.db,
                password=settings.password or None,
                ssl=settings.ssl,
                decode_responses=True,
            )
        )

    def publish_sync(self, channel: str, message: dict[str, Any]) -> None:
        """Publish one event; the active correlation id travels with it."""
        if channel not in ALL_CHANNELS:
            raise ValueError(f"Unknown notification channel {channel!r}; expected {ALL_CHANNELS}")

        correlation_id = get_current_correlation_id()
        payload = {**message, "correlation_id": correlation_id} if correlation_id else message

        with _tracer.start_as_current_span("dispatch.notify") as span:
            span.set_attribute("db.system", "redis")
            span.set_attribute("messaging.destination.name", channel)
            if "request_id" in message:
                span.set_attribute("ride.request_id", message["request_id"])
            if correlation_id:
                span.set_attribute("correlation_id", correlation_id)

            try:
                receivers = self._client.publish(channel, json.dumps(payload))
            except RedisError as e:
                span.record_exception(e)
                logger.error(f"Dropped {channel} event: {e}")
                return
            logger.debug(f"Published {channel} event to {receivers} subscriber(s)")

    def close(self) -> None:
        self._client.close()
