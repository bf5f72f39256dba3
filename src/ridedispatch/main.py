"""Service entry point: configure logging, open the database and serve the API."""

import logging

import uvicorn

from .api import create_app
from .db import init_database
from .dispatch import DispatchService
from .dispatch_logging import setup_logging
from .notifications import RedisPublisher
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_service(settings: Settings) -> DispatchService:
    session_maker = init_database(settings.database.url, echo=settings.database.echo)

    publisher = None
    if settings.redis.enabled:
        publisher = RedisPublisher.from_settings(settings.redis)
        logger.info(f"Publishing ride updates to Redis at {settings.redis.host}")

    return DispatchService(session_maker, settings.dispatch, publisher=publisher)


def main() -> None:
    """Main entry point - initializes and runs the dispatch service."""
    settings = get_settings()

    setup_logging(
        level=settings.dispatch.log_level,
        json_output=settings.dispatch.log_format == "json",
        environment=settings.dispatch.environment,
    )

    logger.info("Starting ride dispatch service...")
    service = build_service(settings)
    app = create_app(service, settings)

    logger.info(f"Serving dispatch API on {settings.api.host}:{settings.api.port}")
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.dispatch.log_level.lower(),
    )


if __name__ == "__main__":
    main()
