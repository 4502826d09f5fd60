"""
Retention sweeper.

Periodically evicts every deal received more than `horizon` ago, whatever its
status, to bound memory. Runs as an asyncio task next to the request handlers;
each eviction takes the store lock on its own so request handling is never
held up for longer than a single map mutation.

A deal swept while a claim is in flight is either removed before the claim
(the claim then reports not found) or after it (the claimant already holds the
contact). Both orders are accepted.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from domain.time import Clock, utc_now
from repositories.deal_repository import DealStore

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = timedelta(hours=1)
DEFAULT_INTERVAL = timedelta(hours=1)


class RetentionSweeper:
    """Scheduled eviction of stale deals."""

    def __init__(
        self,
        store: DealStore,
        *,
        horizon: timedelta = DEFAULT_HORIZON,
        interval: timedelta = DEFAULT_INTERVAL,
        clock: Clock = utc_now,
    ) -> None:
        if horizon <= timedelta(0):
            raise ValueError("horizon must be positive")
        if interval <= timedelta(0):
            raise ValueError("interval must be positive")

        self._store = store
        self._horizon = horizon
        self._interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        """Evict deals older than the horizon. Returns the eviction count."""

        cutoff = self._clock() - self._horizon
        removed = self._store.sweep_older_than(cutoff)
        if removed > 0:
            logger.info("[CLEANUP] %d stale deal(s) removed from memory", removed)
        return removed

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval.total_seconds())
            try:
                self.sweep_once()
            except Exception:
                logger.exception("[CLEANUP] Sweep pass failed")

    def start(self) -> None:
        """Start the loop on the running event loop."""

        if self.is_running:
            logger.warning("[CLEANUP] Sweeper already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._run_loop())
        logger.info(
            "[CLEANUP] Sweeper started (interval=%ss, horizon=%ss)",
            int(self._interval.total_seconds()),
            int(self._horizon.total_seconds()),
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""

        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[CLEANUP] Sweeper stopped")


__all__ = ["RetentionSweeper", "DEFAULT_HORIZON", "DEFAULT_INTERVAL"]
