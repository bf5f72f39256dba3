"""Background expiry of abandoned pending ride requests."""

import asyncio
import contextlib
import logging

from .service import DispatchService

logger = logging.getLogger(__name__)


class RequestExpirySweeper:
    """Periodically cancels pending requests older than the configured TTL."""

    def __init__(self, service: DispatchService, interval_seconds: float | None = None) -> None:
        self._service = service
        self._task: asyncio.Task[None] | None = None
        self._interval = interval_seconds or service.settings.expiry_sweep_interval_seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def sweep_once(self) -> list[str]:
        expired = await asyncio.to_thread(self._service.expire_stale_requests)
        if expired:
            logger.info(f"Expired {len(expired)} pending ride request(s)")
        return expired

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._interval)
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in request expiry loop")
