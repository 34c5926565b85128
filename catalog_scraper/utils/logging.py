from __future__ import annotations

import logging
import os

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def resolve_level(level: str | int | None) -> int:
    if level is None:
        level = os.getenv("SCRAPER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return _LEVELS.get(level.upper(), logging.INFO)
    return level


def setup_logging(level: str | int | None = None) -> None:
    """
    Configure application logging with one formatter shared by the CLI and the API server.
    """
    logging.basicConfig(
        level=resolve_level(level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # Slow-callback warnings from asyncio drown out render stage logs at DEBUG.
    logging.getLogger("asyncio").setLevel(logging.WARNING)
