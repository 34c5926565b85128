from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List

from ..adapters.base import ProductRecord
from ..config import ScraperConfig
from ..engines.browser_engine import PlaywrightRenderer
from ..engines.scrape_engine import ScrapeOrchestrator
from ..errors import ScrapeError
from ..export.base import Exporter
from ..utils.loader import load_symbol
from ..utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Category page product scraper")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--url", type=str, default=None, help="Category page to scrape (default from config)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--output", type=str, default=None, help="Output file path")
    p.add_argument("--preview", type=int, default=10, help="Number of records to print after a scrape")
    p.add_argument("--headful", action="store_true", help="Show the browser window while scraping")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run the REST API server instead of a one-shot scrape")
    p.add_argument("--host", type=str, default=None, help="API host (when --serve, default from config)")
    p.add_argument("--port", type=int, default=None, help="API port (when --serve, default from config)")
    return p


def _load_config(args: argparse.Namespace) -> ScraperConfig:
    if args.config:
        cfg = ScraperConfig.from_file(args.config)
    else:
        cfg = ScraperConfig.from_env()

    if args.url:
        cfg.target_url = args.url
    if args.exporter:
        cfg.exporter = args.exporter
    if args.output:
        cfg.output_path = args.output
    if args.headful:
        cfg.headless = False
    if args.host:
        cfg.host = args.host
    if args.port is not None:
        cfg.port = args.port

    cfg.validate()
    return cfg


def run_server(cfg: ScraperConfig) -> None:
    try:
        import uvicorn  # type: ignore
        from ..apis.app import create_app
    except Exception as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install dependencies: pip install fastapi uvicorn pydantic") from exc
    logger.info("Server running on http://%s:%s (products: /api/products)", cfg.host, cfg.port)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)


def preview(records: List[ProductRecord], limit: int) -> str:
    return json.dumps([r.to_dict() for r in records[:limit]], indent=2, ensure_ascii=False)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)
    cfg = _load_config(args)

    if args.serve:
        run_server(cfg)
        return 0

    engine = ScrapeOrchestrator(cfg, renderer=PlaywrightRenderer(cfg))
    try:
        records = asyncio.run(engine.scrape())
    except ScrapeError as exc:
        logger.error("%s", exc)
        return 1

    exporter: Exporter = load_symbol(cfg.exporter)()
    exporter.export(records, cfg.output_path)

    logger.info("Products: %s | Output: %s", len(records), cfg.output_path)
    if args.preview > 0 and records:
        print(preview(records, args.preview))
    return 0
