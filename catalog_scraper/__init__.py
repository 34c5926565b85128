"""
Scrape-and-cache service for a single e-commerce category page.

Exports:
- ProductRecord: one scraped listing
- ScraperConfig: runtime configuration
"""

from .adapters.base import ProductRecord
from .config import ScraperConfig
from .version import __version__

__all__ = ["ProductRecord", "ScraperConfig", "__version__"]
