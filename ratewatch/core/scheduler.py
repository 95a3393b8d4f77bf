"""Periodic collection rounds."""

from __future__ import annotations

import asyncio
import contextlib

from loguru import logger

from ratewatch.core.service import FundingService, RoundSummary

DEFAULT_INTERVAL = 60.0


class CollectionScheduler:
    """Runs a collection round every ``interval`` seconds in a background task.

    Rounds never overlap. The loop waits for a round to finish before
    sleeping again, and :meth:`run_once` called from elsewhere while a round
    is in progress is skipped rather than queued.
    """

    def __init__(self, service: FundingService, interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.service = service
        self.interval = interval
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        if self.running:
            return
        logger.info("Starting background logging every {}s", self.interval)
        self._task = asyncio.create_task(self._loop(), name="ratewatch-collection")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Background logging stopped")

    async def run_once(self) -> RoundSummary | None:
        """Run one round now, or return ``None`` if one is already in progress."""

        if self._lock.locked():
            logger.warning("Previous collection round still running, skipping tick")
            self._record_round("skipped")
            return None
        async with self._lock:
            try:
                summary = await self.service.run_collection_round()
            except Exception:
                logger.exception("Collection round failed")
                self._record_round("failed")
                return None
        self._record_round("completed")
        return summary

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.run_once()

    def _record_round(self, outcome: str) -> None:
        if self.service.metrics is not None:
            self.service.metrics.record_round(outcome)
