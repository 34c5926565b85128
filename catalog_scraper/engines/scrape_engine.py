from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import List, Optional

from .base import PageRenderer, ScrapeEngine
from ..adapters.base import ProductRecord
from ..adapters.extractor import ListingExtractor
from ..config import ScraperConfig
from ..errors import ScrapeError
from ..utils.loader import load_symbol

logger = logging.getLogger(__name__)


class ScrapeState(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


class ScrapeOrchestrator(ScrapeEngine):
    """
    One render-and-extract cycle per call.
    - Renderer owns the browser; its session closes before DONE/FAILED is reported.
    - Extractor owns parsing.
    - Any fault surfaces as ScrapeError; partial results are never returned.
    Concurrent calls are not serialized here (see CacheManager).
    """
    def __init__(
        self,
        config: ScraperConfig,
        renderer: PageRenderer,
        extractor: Optional[ListingExtractor] = None,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.extractor = extractor or build_extractor(config)
        self.state = ScrapeState.IDLE
        self.last_error: Optional[ScrapeError] = None

    async def scrape(self) -> List[ProductRecord]:
        started = time.monotonic()
        self.state = ScrapeState.RENDERING
        logger.info("Scraping %s", self.config.target_url)
        try:
            async with self.renderer.session(self.config.target_url) as page:
                self.state = ScrapeState.EXTRACTING
                # Parsing is pure CPU work; keep the loop free for other requests.
                records = await asyncio.to_thread(self.extractor.extract, page)
        except Exception as exc:
            self.state = ScrapeState.FAILED
            self.last_error = ScrapeError(f"Scrape of {self.config.target_url} failed: {exc}")
            logger.warning("%s", self.last_error)
            raise self.last_error from exc

        self.state = ScrapeState.DONE
        self.last_error = None
        logger.info("Scraped %s products in %.1fs", len(records), time.monotonic() - started)
        return records


def build_extractor(config: ScraperConfig) -> ListingExtractor:
    """Extractor wired with the configured price normalizer."""
    normalizer = load_symbol(config.price_normalizer)
    return ListingExtractor(product_path=config.product_path, price_normalizer=normalizer)
