from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ..adapters.base import RenderedPage
from ..adapters.matchers import product_link_selector
from ..config import ScraperConfig
from ..errors import RenderError, RenderErrorKind

logger = logging.getLogger(__name__)


def app_data_dir() -> Path:
    base = os.getenv("LOCALAPPDATA") or str(Path.home() / ".catalog-scraper")
    p = Path(base) / "catalog-scraper"
    p.mkdir(parents=True, exist_ok=True)
    return p


def use_app_browsers_dir() -> str:
    """Default PLAYWRIGHT_BROWSERS_PATH to a per-user directory; an explicit value wins."""
    return os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(app_data_dir() / "ms-playwright"))


BROWSERS_DIR = use_app_browsers_dir()


def chrome_candidates() -> List[str]:
    local = os.getenv("LOCALAPPDATA")
    paths = [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
    ]
    if local:
        paths.append(str(Path(local) / "Google" / "Chrome" / "Application" / "chrome.exe"))
    return paths


def find_browser_executable(candidates: Optional[Iterable[str]] = None) -> Optional[str]:
    """First installed Chrome among the known locations, or None to use Playwright's bundled Chromium."""
    for path in candidates if candidates is not None else chrome_candidates():
        if path and Path(path).exists():
            return path
    return None


LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]

# Hide the most common automation tell before any page script runs.
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
window.chrome = window.chrome || { runtime: {} };
"""

READY_PREDICATE = "([selector, minimum]) => document.querySelectorAll(selector).length >= minimum"
SCROLL_SCRIPT = "() => window.scrollBy(0, window.innerHeight)"


class PlaywrightRenderer:
    """
    Headless Chromium renderer. Every session launches its own browser and
    closes it on exit, so nothing is shared between scrapes.
    """

    def __init__(
        self,
        config: ScraperConfig,
        playwright_factory: Callable[[], Any] = async_playwright,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.config = config
        self._playwright_factory = playwright_factory
        self._sleep = sleep

    async def render(self, target_url: str) -> RenderedPage:
        async with self.session(target_url) as page:
            return page

    @asynccontextmanager
    async def session(self, target_url: str) -> AsyncIterator[RenderedPage]:
        async with self._playwright_factory() as playwright:
            browser = await self._launch(playwright)
            try:
                page = await self._open_page(browser)
                await self._navigate(page, target_url)
                await self._wait_until_ready(page)
                await self._scroll(page)
                html = await page.content()
                yield RenderedPage(url=page.url or target_url, html=html)
            finally:
                await browser.close()
                logger.debug("Browser closed for %s", target_url)

    # ---- Stages -------------------------------------------------------------

    def launch_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": self.config.headless, "args": list(LAUNCH_ARGS)}
        executable = self.config.browser_executable or find_browser_executable()
        if executable:
            options["executable_path"] = executable
        return options

    async def _launch(self, playwright: Any) -> Any:
        options = self.launch_options()
        logger.debug("Launching chromium (headless=%s, executable=%s)",
                     options["headless"], options.get("executable_path", "bundled"))
        try:
            return await playwright.chromium.launch(**options)
        except PlaywrightError as exc:
            raise RenderError(RenderErrorKind.LAUNCH_FAILURE, f"browser failed to start: {exc}") from exc

    async def _open_page(self, browser: Any) -> Any:
        context = await browser.new_context(
            user_agent=self.config.user_agent,
            viewport={"width": 1366, "height": 900},
        )
        await context.add_init_script(STEALTH_SCRIPT)
        return await context.new_page()

    async def _navigate(self, page: Any, target_url: str) -> None:
        logger.debug("Navigating to %s", target_url)
        try:
            await page.goto(
                target_url,
                wait_until="networkidle",
                timeout=self.config.navigation_timeout * 1000,
            )
        except PlaywrightTimeoutError as exc:
            raise RenderError(
                RenderErrorKind.TIMEOUT,
                f"navigation to {target_url} exceeded {self.config.navigation_timeout:g}s",
            ) from exc
        except PlaywrightError as exc:
            raise RenderError(RenderErrorKind.NAVIGATION_FAILURE, f"navigation to {target_url} failed: {exc}") from exc

    async def _wait_until_ready(self, page: Any) -> None:
        selector = product_link_selector(self.config.product_path)
        try:
            await page.wait_for_function(
                READY_PREDICATE,
                arg=[selector, self.config.min_product_links],
                timeout=self.config.ready_timeout * 1000,
            )
        except PlaywrightTimeoutError as exc:
            raise RenderError(
                RenderErrorKind.CONTENT_NOT_READY,
                f"fewer than {self.config.min_product_links} product links after "
                f"{self.config.ready_timeout:g}s",
            ) from exc

    async def _scroll(self, page: Any) -> None:
        for cycle in range(self.config.scroll_cycles):
            await page.evaluate(SCROLL_SCRIPT)
            await self._sleep(self.config.scroll_pause)
            logger.debug("Scroll cycle %s/%s done", cycle + 1, self.config.scroll_cycles)
