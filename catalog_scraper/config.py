from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any
from urllib.parse import urlparse
import os
import json

from .version import CONFIG_SCHEMA_VERSION

DEFAULT_TARGET_URL = "https://uae.sharafdg.com/c/home_appliances/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ScraperConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) so tests can build one directly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    # Page rendering
    target_url: str = DEFAULT_TARGET_URL
    product_path: str = "/product/"
    min_product_links: int = 3
    navigation_timeout: float = 60.0
    ready_timeout: float = 30.0
    scroll_cycles: int = 6
    scroll_pause: float = 2.0
    headless: bool = True
    browser_executable: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    # Cache
    cache_ttl: float = 300.0
    # Image relay
    image_referer: str = "https://uae.sharafdg.com/"
    image_timeout: float = 15.0
    # Dotted paths so the site-specific pieces can be swapped without code changes.
    price_normalizer: str = "catalog_scraper.utils.parsing:normalize_price"
    exporter: str = "catalog_scraper.export.json_exporter:JSONExporter"
    output_path: str = "output/products.json"
    # API server
    host: str = "0.0.0.0"
    port: int = 3001
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "ScraperConfig":
        """
        Build config from environment variables (all optional).
        """
        defaults = cls()

        def _get(name: str, default: Any) -> str:
            return os.getenv(name, str(default))

        return cls(
            target_url=_get("SCRAPER_TARGET_URL", defaults.target_url),
            product_path=_get("SCRAPER_PRODUCT_PATH", defaults.product_path),
            min_product_links=int(_get("SCRAPER_MIN_PRODUCT_LINKS", defaults.min_product_links)),
            navigation_timeout=float(_get("SCRAPER_NAVIGATION_TIMEOUT", defaults.navigation_timeout)),
            ready_timeout=float(_get("SCRAPER_READY_TIMEOUT", defaults.ready_timeout)),
            scroll_cycles=int(_get("SCRAPER_SCROLL_CYCLES", defaults.scroll_cycles)),
            scroll_pause=float(_get("SCRAPER_SCROLL_PAUSE", defaults.scroll_pause)),
            headless=_env_bool(_get("SCRAPER_HEADLESS", "true")),
            browser_executable=os.getenv("SCRAPER_BROWSER_EXECUTABLE") or None,
            user_agent=_get("SCRAPER_USER_AGENT", defaults.user_agent),
            cache_ttl=float(_get("SCRAPER_CACHE_TTL", defaults.cache_ttl)),
            image_referer=_get("SCRAPER_IMAGE_REFERER", defaults.image_referer),
            image_timeout=float(_get("SCRAPER_IMAGE_TIMEOUT", defaults.image_timeout)),
            price_normalizer=_get("SCRAPER_PRICE_NORMALIZER", defaults.price_normalizer),
            exporter=_get("SCRAPER_EXPORTER", defaults.exporter),
            output_path=_get("SCRAPER_OUTPUT_PATH", defaults.output_path),
            host=_get("HOST", defaults.host),
            port=int(_get("PORT", defaults.port)),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "ScraperConfig":
        """
        Load configuration from a JSON file. Supports schema migration for future versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        parsed = urlparse(self.target_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("target_url must be an absolute http(s) URL.")
        if not self.product_path:
            raise ValueError("product_path cannot be empty")
        if self.min_product_links < 1:
            raise ValueError("min_product_links must be >= 1")
        if self.navigation_timeout <= 0 or self.ready_timeout <= 0:
            raise ValueError("navigation_timeout and ready_timeout must be > 0")
        if self.scroll_cycles < 0:
            raise ValueError("scroll_cycles must be >= 0")
        if self.scroll_pause < 0:
            raise ValueError("scroll_pause must be >= 0")
        if self.cache_ttl <= 0:
            raise ValueError("cache_ttl must be > 0")
        if self.image_timeout <= 0:
            raise ValueError("image_timeout must be > 0")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema < 1:
        # Pre-release files used millisecond timeouts like the browser APIs do.
        for key in ("navigation_timeout", "ready_timeout"):
            if key in raw:
                raw[key] = raw[key] / 1000.0
        raw["schema_version"] = 1

    # Unknown keys are kept aside rather than rejected.
    known = set(ScraperConfig.__dataclass_fields__)
    extra = {k: raw.pop(k) for k in list(raw) if k not in known}
    if extra:
        raw.setdefault("extra", {}).update(extra)

    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
