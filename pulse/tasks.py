"""Periodic baseline refresh for a GaugeStore."""

import asyncio
import logging

from pulse.config import BASELINE_REFRESH_ENABLED, BASELINE_REFRESH_SECONDS
from pulse.store import GaugeStore

logger = logging.getLogger(__name__)


class BaselineRefresher:
    """Background asyncio task that recomputes every gauge baseline on an interval.

    A late or skipped run only leaves baselines stale until the next one.
    """

    def __init__(self, store: GaugeStore, interval_seconds: float = BASELINE_REFRESH_SECONDS,
                 enabled: bool = BASELINE_REFRESH_ENABLED):
        self.store = store
        self.interval_seconds = interval_seconds
        self.enabled = enabled
        self._task: asyncio.Task | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                refreshed = self.store.recalculate_all_baselines()
                self.runs += 1
                logger.debug("Baseline refresh: %d categories updated", refreshed)
            except Exception:
                logger.error("Baseline refresh loop error", exc_info=True)

    def start(self) -> None:
        """Start the refresh task on the running event loop."""
        if not self.enabled:
            logger.info("Baseline refresher disabled")
            return
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Baseline refresher started (every %.0fs)", self.interval_seconds)

    def stop(self) -> None:
        """Cancel the refresh task."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Baseline refresher stopped")
