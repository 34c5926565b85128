from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import List, Protocol

from ..adapters.base import ProductRecord, RenderedPage


class PageRenderer(Protocol):
    """
    Renders a URL inside a scoped browser session.
    The browser is released when the returned context exits, whatever the outcome.
    """

    def session(self, target_url: str) -> AbstractAsyncContextManager[RenderedPage]:
        ...


class ScrapeEngine(ABC):
    """
    Abstract engine interface. Implementations own one render-and-extract cycle.
    """
    @abstractmethod
    async def scrape(self) -> List[ProductRecord]:  # pragma: no cover - interface
        ...
