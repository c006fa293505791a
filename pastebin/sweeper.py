"""
Background reclamation of expired pastes.

Readers never see expired pastes regardless of whether the sweeper has run;
it only keeps storage from growing without bound.
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from pastebin import expiry
from pastebin.errors import StorageError
from pastebin.storage.backend import PasteStorageBackend

logger = logging.getLogger(__name__)


class ReclamationSweeper:
    """Periodically deletes pastes whose expiry has passed."""

    def __init__(
        self,
        backend: PasteStorageBackend,
        interval: float,
        clock: Callable[[], datetime] = expiry.utcnow,
    ):
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")
        self.backend = backend
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Run one reclamation cycle.

        Returns:
            Number of pastes removed
        """
        now = now or self._clock()
        removed = 0
        try:
            for paste_id in self.backend.scan_expired(now):
                try:
                    if self.backend.delete(paste_id):
                        removed += 1
                except StorageError as e:
                    logger.error(f"Failed to reclaim expired paste {paste_id}: {e}")
        except StorageError as e:
            logger.error(f"Expired paste scan aborted: {e}")

        if removed:
            logger.info(f"Reclaimed {removed} expired pastes")
        return removed

    async def _run(self) -> None:
        logger.info(f"Reclamation sweeper started (interval {self.interval}s)")
        while True:
            try:
                await asyncio.to_thread(self.sweep)
            except Exception as e:
                logger.error(f"Unexpected error during sweep: {type(e).__name__}: {e}")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start sweeping on the running event loop."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the sweeping task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reclamation sweeper stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
