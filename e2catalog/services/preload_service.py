"""
Picon Preloading Service

Warms the picon cache for every channel of every bouquet, in paced batches
of bounded size so the receiver's web server is not flooded.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal, Sequence

from e2catalog.services.bouquet_service import BouquetDirectory
from e2catalog.services.channel_service import ChannelDirectory
from e2catalog.services.lineup_types import Bouquet, Channel
from e2catalog.services.picon_service import PiconService
from e2catalog.utils.logging_helpers import (
    log_batch_progress,
    log_preload_start,
    log_preload_summary,
)


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreloadSummary:
    started_at: datetime
    status: Literal["completed", "cancelled", "skipped", "disabled", "failed"] = "completed"
    completed_at: datetime | None = None
    bouquets_processed: int = 0
    bouquets_failed: int = 0
    channels: int = 0
    loaded: int = 0
    failed: int = 0
    batches: int = 0
    error: str | None = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return max(0.0, (self.completed_at - self.started_at).total_seconds())

    def to_dict(self) -> dict:
        payload = {
            "status": self.status,
            "bouquets_processed": self.bouquets_processed,
            "bouquets_failed": self.bouquets_failed,
            "channels": self.channels,
            "loaded": self.loaded,
            "failed": self.failed,
            "batches": self.batches,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }
        if self.error:
            payload["error"] = self.error
        return payload


class PiconPreloader:
    """Drives the picon pipeline over the whole lineup in paced batches."""

    def __init__(
        self,
        bouquets: BouquetDirectory,
        channels: ChannelDirectory,
        picons: PiconService,
        *,
        batch_size: int = 15,
        batch_delay: float = 0.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        self._bouquets = bouquets
        self._channels = channels
        self._picons = picons
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._cancel_requested = False

    def cancel(self) -> None:
        """Stop the running preload at the next batch boundary."""
        self._cancel_requested = True

    def is_running(self) -> bool:
        return self._lock.locked()

    async def preload_all(self) -> PreloadSummary:
        """
        Preload picons for all channels of all bouquets.

        Never raises for upstream failures: a bouquet whose channels cannot
        be listed is logged and skipped, and a failing bouquet listing ends
        the run with status "failed".

        Returns:
            Aggregate counts for the run
        """
        summary = PreloadSummary(started_at=datetime.now(timezone.utc))

        if not self._picons.enabled:
            logger.info("Picons disabled - skipping preload")
            summary.status = "disabled"
            return self._finish(summary)

        if self._lock.locked():
            logger.warning("Picon preload already in progress, skipping this request")
            summary.status = "skipped"
            return self._finish(summary)

        async with self._lock:
            self._cancel_requested = False
            log_preload_start(logger)

            try:
                bouquets = await self._bouquets.list_bouquets()
            except Exception as exc:
                logger.error("Picon preload failed: %s", exc)
                summary.status = "failed"
                summary.error = str(exc)
                return self._finish(summary)

            for bouquet in bouquets:
                if self._cancel_requested:
                    break
                await self._preload_bouquet(bouquet, summary)

            if self._cancel_requested:
                logger.warning("Picon preload cancelled")
                summary.status = "cancelled"

            log_preload_summary(logger, summary.loaded, summary.channels, summary.failed)
            return self._finish(summary)

    async def _preload_bouquet(self, bouquet: Bouquet, summary: PreloadSummary) -> None:
        name = bouquet.display_name or bouquet.name
        try:
            channels = await self._channels.list_channels(bouquet.reference)
        except Exception as exc:
            logger.error("Failed to load %s: %s", name, exc)
            summary.bouquets_failed += 1
            return

        summary.channels += len(channels)
        logger.info("Preloading %s logos from %s...", len(channels), name)

        loaded_before = summary.loaded
        batches = list(iter_batches(channels, self.batch_size))
        for number, batch in enumerate(batches, start=1):
            if self._cancel_requested:
                return

            loaded, failed = await self._run_batch(batch)
            summary.batches += 1
            summary.loaded += loaded
            summary.failed += failed

            done = min(number * self.batch_size, len(channels))
            log_batch_progress(logger, name, done, len(channels), loaded, failed)

            if number < len(batches):
                await self._sleep(self.batch_delay)

        summary.bouquets_processed += 1
        logger.info("%s: %s logos loaded", name, summary.loaded - loaded_before)

    async def _run_batch(self, batch: Sequence[Channel]) -> tuple[int, int]:
        """Fetch one batch concurrently and wait for every fetch to settle."""
        results = await asyncio.gather(
            *(self._picons.get_square_picon(channel.service_reference) for channel in batch),
            return_exceptions=True,
        )

        loaded = 0
        for channel, result in zip(batch, results):
            if isinstance(result, BaseException):
                logger.debug("Picon for %s raised: %s", channel.name, result)
            elif result:
                loaded += 1
        return loaded, len(batch) - loaded

    @staticmethod
    def _finish(summary: PreloadSummary) -> PreloadSummary:
        summary.completed_at = datetime.now(timezone.utc)
        return summary


def iter_batches(items: Sequence[Channel], size: int):
    """Yield consecutive slices of at most size items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]
