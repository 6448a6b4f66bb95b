"""Background task that purges expired clipboards on a fixed interval."""

import asyncio
import logging

from codeclip.services.clipboard_service import ClipboardStore

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Runs ClipboardStore.sweep_expired() every `interval_seconds`.

    Lookups already refuse expired records, so the sweep only bounds how
    long dead rows occupy storage.
    """

    def __init__(self, store: ClipboardStore, interval_seconds: float):
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Sweep now. Failures are logged and reported as zero removals."""
        try:
            return await self.store.sweep_expired()
        except Exception:
            logger.exception("Expiry sweep failed")
            return 0

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()

    async def start(self) -> None:
        """Run an initial sweep, then schedule the periodic loop."""
        await self.run_once()
        if self.interval_seconds <= 0:
            logger.info("Periodic expiry sweep disabled")
            return
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="codeclip-expiry-sweeper")
        logger.info("Expiry sweeper started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")
