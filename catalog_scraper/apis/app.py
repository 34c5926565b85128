from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional
import logging

try:
    from fastapi import FastAPI, Query, Request
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse, Response
    from pydantic import BaseModel
except Exception as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install fastapi pydantic uvicorn` "
        "or avoid using the API server."
    ) from exc

from ..cache import CacheManager
from ..config import ScraperConfig
from ..engines.browser_engine import PlaywrightRenderer
from ..engines.scrape_engine import ScrapeOrchestrator
from ..errors import RelayError, ScrapeError
from ..utils.http import create_session
from ..version import __version__
from .image_relay import ImageRelay

logger = logging.getLogger(__name__)


class ProductOut(BaseModel):
    id: int
    title: str
    price: str
    image: str
    url: str


class RefreshResponse(BaseModel):
    success: bool = True
    count: int
    products: List[ProductOut]


class ProductsResponse(RefreshResponse):
    cached: bool


class HealthResponse(BaseModel):
    status: str
    timestamp: str


def build_cache(config: ScraperConfig) -> CacheManager:
    engine = ScrapeOrchestrator(config, renderer=PlaywrightRenderer(config))
    return CacheManager(engine, ttl=config.cache_ttl)


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_app(
    config: Optional[ScraperConfig] = None,
    cache: Optional[CacheManager] = None,
    relay: Optional[ImageRelay] = None,
) -> FastAPI:
    cfg = config or ScraperConfig.from_env()
    cfg.validate()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        session = None
        if app.state.relay is None:
            session = create_session()
            app.state.relay = ImageRelay(
                session,
                referer=cfg.image_referer,
                user_agent=cfg.user_agent,
                timeout=cfg.image_timeout,
            )
        logger.info("Serving products from %s (cache ttl %ss)", cfg.target_url, cfg.cache_ttl)
        try:
            yield
        finally:
            if session is not None:
                await session.close()

    app = FastAPI(title="catalog_scraper API", version=__version__, lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.config = cfg
    app.state.cache = cache or build_cache(cfg)
    app.state.relay = relay

    @app.exception_handler(ScrapeError)
    async def scrape_failed(request: Request, exc: ScrapeError) -> JSONResponse:
        logger.error("Request %s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    @app.get("/api/products", response_model=ProductsResponse)
    async def products(request: Request) -> ProductsResponse:
        records, cached = await request.app.state.cache.get_or_scrape()
        return ProductsResponse(
            count=len(records),
            cached=cached,
            products=[ProductOut(**r.to_dict()) for r in records],
        )

    @app.get("/api/products/refresh", response_model=RefreshResponse)
    async def refresh(request: Request) -> RefreshResponse:
        records = await request.app.state.cache.force_scrape()
        return RefreshResponse(count=len(records), products=[ProductOut(**r.to_dict()) for r in records])

    @app.get("/api/image-proxy")
    async def image_proxy(request: Request, url: Optional[str] = Query(default=None)) -> Response:
        try:
            image = await request.app.state.relay.relay(url)
        except RelayError as exc:
            return JSONResponse(status_code=exc.status, content={"error": exc.message})
        except Exception:
            logger.exception("Image proxy error for %s", url)
            return JSONResponse(status_code=500, content={"error": "Image proxy error"})
        return Response(
            content=image.body,
            media_type=image.content_type,
            headers={"Cache-Control": image.cache_control},
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=utc_timestamp())

    return app


app = create_app()
