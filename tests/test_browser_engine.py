import os

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from catalog_scraper.config import ScraperConfig
from catalog_scraper.engines.browser_engine import PlaywrightRenderer, find_browser_executable
from catalog_scraper.errors import RenderError, RenderErrorKind

from fakes import FakePage, FakePlaywright

URL = "https://shop.example.com/c/home/"


@pytest.fixture
def config():
    return ScraperConfig(target_url=URL, scroll_cycles=3, scroll_pause=0.5, browser_executable="/opt/chrome")


def renderer_for(config, page, launch_error=None):
    playwright = FakePlaywright(page, launch_error=launch_error)
    pauses = []

    async def fake_sleep(seconds):
        pauses.append(seconds)

    renderer = PlaywrightRenderer(config, playwright_factory=playwright, sleep=fake_sleep)
    return renderer, playwright, pauses


async def test_render_returns_snapshot_and_closes_browser(config):
    page = FakePage("<html>rendered</html>", URL)
    renderer, playwright, pauses = renderer_for(config, page)

    rendered = await renderer.render(URL)

    assert rendered.html == "<html>rendered</html>"
    assert rendered.url == URL
    assert page.goto_calls == [{"url": URL, "wait_until": "networkidle", "timeout": 60_000}]
    assert page.ready_calls[0]["arg"] == ['a[href*="/product/"]', 3]
    assert page.ready_calls[0]["timeout"] == 30_000
    assert page.scrolls == 3
    assert pauses == [0.5, 0.5, 0.5]
    assert playwright.browser.closed
    assert playwright.stopped


async def test_launch_uses_stealth_settings(config):
    page = FakePage("", URL)
    renderer, playwright, _ = renderer_for(config, page)

    await renderer.render(URL)

    options = playwright.chromium.launch_options
    assert "--disable-blink-features=AutomationControlled" in options["args"]
    assert options["headless"] is True
    assert options["executable_path"] == "/opt/chrome"
    assert playwright.browser.context_options["user_agent"] == config.user_agent
    assert "webdriver" in playwright.browser.context.init_scripts[0]


async def test_navigation_timeout(config):
    page = FakePage("", URL, goto_error=PlaywrightTimeoutError("Timeout 60000ms exceeded"))
    renderer, playwright, _ = renderer_for(config, page)

    with pytest.raises(RenderError) as excinfo:
        await renderer.render(URL)

    assert excinfo.value.kind is RenderErrorKind.TIMEOUT
    assert playwright.browser.closed
    assert page.ready_calls == []


async def test_navigation_failure(config):
    page = FakePage("", URL, goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    renderer, playwright, _ = renderer_for(config, page)

    with pytest.raises(RenderError) as excinfo:
        await renderer.render(URL)

    assert excinfo.value.kind is RenderErrorKind.NAVIGATION_FAILURE
    assert playwright.browser.closed


async def test_too_few_product_links(config):
    page = FakePage("", URL, ready_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
    renderer, playwright, pauses = renderer_for(config, page)

    with pytest.raises(RenderError) as excinfo:
        await renderer.render(URL)

    assert excinfo.value.kind is RenderErrorKind.CONTENT_NOT_READY
    assert page.scrolls == 0 and pauses == []
    assert playwright.browser.closed


async def test_launch_failure(config):
    page = FakePage("", URL)
    renderer, playwright, _ = renderer_for(
        config, page, launch_error=PlaywrightError("Executable doesn't exist at /opt/chrome")
    )

    with pytest.raises(RenderError) as excinfo:
        await renderer.render(URL)

    assert excinfo.value.kind is RenderErrorKind.LAUNCH_FAILURE
    assert page.goto_calls == []
    assert playwright.stopped


async def test_browser_closed_when_caller_body_fails(config):
    page = FakePage("<html></html>", URL)
    renderer, playwright, _ = renderer_for(config, page)

    with pytest.raises(ValueError):
        async with renderer.session(URL):
            assert not playwright.browser.closed
            raise ValueError("extraction blew up")

    assert playwright.browser.closed


def test_find_browser_executable(tmp_path):
    chrome = tmp_path / "chrome"
    chrome.write_text("")
    assert find_browser_executable([str(tmp_path / "missing"), str(chrome)]) == str(chrome)
    assert find_browser_executable([str(tmp_path / "missing")]) is None
    assert find_browser_executable([]) is None


def test_browsers_path_defaults_to_app_data_dir(monkeypatch, tmp_path):
    import importlib

    from catalog_scraper.engines import browser_engine

    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    monkeypatch.delenv("PLAYWRIGHT_BROWSERS_PATH", raising=False)

    importlib.reload(browser_engine)

    expected = tmp_path / "catalog-scraper" / "ms-playwright"
    assert os.environ["PLAYWRIGHT_BROWSERS_PATH"] == str(expected)
    assert browser_engine.BROWSERS_DIR == str(expected)
    assert (tmp_path / "catalog-scraper").is_dir()


def test_existing_browsers_path_is_kept(monkeypatch, tmp_path):
    from catalog_scraper.engines.browser_engine import use_app_browsers_dir

    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    monkeypatch.setenv("PLAYWRIGHT_BROWSERS_PATH", "/srv/browsers")

    assert use_app_browsers_dir() == "/srv/browsers"
    assert os.environ["PLAYWRIGHT_BROWSERS_PATH"] == "/srv/browsers"
