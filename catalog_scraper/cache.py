from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .adapters.base import ProductRecord
from .engines.base import ScrapeEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    records: Tuple[ProductRecord, ...] = ()
    captured_at: Optional[float] = None

    def age(self, now: float) -> Optional[float]:
        if self.captured_at is None:
            return None
        return now - self.captured_at


class CacheManager:
    """
    Serves the last successful scrape while it is younger than ``ttl`` seconds.

    Only a completed scrape replaces the entry, in a single assignment, so
    readers see either the old entry or the new one. A failed scrape leaves
    it untouched. At most one scrape runs at a time: callers arriving while
    one is in flight await that same task.
    """

    def __init__(
        self,
        engine: ScrapeEngine,
        ttl: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.engine = engine
        self.ttl = ttl
        self._clock = clock
        self._entry = CacheEntry()
        self._inflight: Optional[asyncio.Task] = None

    # ---- Read access --------------------------------------------------------

    def get(self) -> CacheEntry:
        return self._entry

    def is_fresh(self, now: Optional[float] = None) -> bool:
        # An empty result is stored but never served as a hit.
        age = self._entry.age(self._clock() if now is None else now)
        return bool(self._entry.records) and age is not None and age < self.ttl

    @property
    def scrape_in_flight(self) -> bool:
        return self._inflight is not None

    # ---- Operations ---------------------------------------------------------

    async def get_or_scrape(self) -> Tuple[List[ProductRecord], bool]:
        if self.is_fresh():
            logger.info("Returning %s cached products", len(self._entry.records))
            return list(self._entry.records), True

        logger.info("Cache miss, scraping fresh products")
        entry = await self._scrape_once()
        return list(entry.records), False

    async def force_scrape(self) -> List[ProductRecord]:
        logger.info("Force refreshing products")
        entry = await self._scrape_once()
        return list(entry.records)

    # ---- In-flight guard ----------------------------------------------------

    async def _scrape_once(self) -> CacheEntry:
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._run_scrape())
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            logger.info("Scrape already in flight, waiting for its result")
        # Shielded so a caller that goes away does not cancel the shared scrape.
        return await asyncio.shield(self._inflight)

    async def _run_scrape(self) -> CacheEntry:
        records = await self.engine.scrape()
        entry = CacheEntry(records=tuple(records), captured_at=self._clock())
        self._entry = entry
        return entry

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        # Mark the outcome as retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()
