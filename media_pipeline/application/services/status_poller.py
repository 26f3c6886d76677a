"""Background refresh of assets waiting on the transcoding provider."""

import asyncio
import contextlib

from media_pipeline.application.services.ingestion import MediaIngestionService
from media_pipeline.commons.telemetry import get_logger

logger = get_logger(__name__)


class ProcessingStatusPoller:
    """Periodically pulls provider status for ``processing`` assets.

    Optional: reads through ``get_asset`` keep working without it. It uses
    the same guarded refresh path, so it can race with readers safely.
    """

    def __init__(
        self,
        service: MediaIngestionService,
        interval_seconds: float,
        batch_size: int = 50,
    ) -> None:
        self._service = service
        self._interval = interval_seconds
        self._batch_size = batch_size
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the poll loop."""
        if self.running:
            logger.warning("Status poller already running")
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info("Status poller started", extra={"interval_seconds": self._interval})

    async def stop(self) -> None:
        """Stop the poll loop and wait for the current pass to end."""
        if self._task is None:
            return
        self._stopping.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Status poller stopped")

    async def poll_once(self) -> int:
        """Run a single refresh pass. Returns the number of refreshed assets."""
        return await self._service.refresh_processing(limit=self._batch_size)

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                refreshed = await self.poll_once()
                if refreshed:
                    logger.debug("Refreshed processing assets", extra={"count": refreshed})
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Status poll pass failed")

            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self._interval)
