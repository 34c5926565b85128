from __future__ import annotations

from enum import Enum


class CatalogScraperError(Exception):
    """Base class for every error raised by the scraper core."""


class RenderErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONTENT_NOT_READY = "content_not_ready"
    LAUNCH_FAILURE = "launch_failure"
    NAVIGATION_FAILURE = "navigation_failure"


class RenderError(CatalogScraperError):
    def __init__(self, kind: RenderErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"


class ScrapeError(CatalogScraperError):
    """A scrape attempt failed as a whole. The cause is chained."""


class RelayError(CatalogScraperError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
