"""Tests for the Playwright renderer against a fake browser driver."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from product_distill import renderer
from product_distill.config import RenderOptions
from product_distill.errors import NavigationError, RenderTimeout
from product_distill.renderer import PlaywrightRenderer

URL = "https://acme.example.com/p/365"


class FakePage:
    def __init__(self, goto_error=None):
        self.goto_error = goto_error
        self.url = URL + "?ref=final"
        self.navigation_timeout = None
        self.waited_ms = None
        self.scripts = []

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout

    def set_default_timeout(self, timeout):
        pass

    async def goto(self, url, wait_until):
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_timeout(self, timeout):
        self.waited_ms = timeout

    async def evaluate(self, script):
        self.scripts.append(script)

    async def content(self):
        return "<html><body><p>Output 45 W</p></body></html>"


class FakeContext:
    def __init__(self, page, error=None):
        self.page = page
        self.error = error

    async def new_page(self):
        if self.error is not None:
            raise self.error
        return self.page


class FakeBrowser:
    def __init__(self, context, context_error=None):
        self.context = context
        self.context_error = context_error
        self.context_options = None
        self.closed = False

    async def new_context(self, **options):
        if self.context_error is not None:
            raise self.context_error
        self.context_options = options
        return self.context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error

    async def launch(self, headless, args):
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, chromium):
        self.chromium = chromium
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakeDriverManager:
    def __init__(self, playwright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


def _install(monkeypatch, page=None, page_error=None, context_error=None, launch_error=None):
    page = page or FakePage()
    browser = FakeBrowser(FakeContext(page, page_error), context_error)
    playwright = FakePlaywright(FakeChromium(browser, launch_error))
    monkeypatch.setattr(renderer, "async_playwright", lambda: FakeDriverManager(playwright))
    return browser, playwright


def _render(options=None):
    async def _run():
        async with PlaywrightRenderer(options) as active:
            return await active.render(URL)

    return asyncio.run(_run())


def test_successful_render_closes_the_browser(monkeypatch):
    page = FakePage()
    browser, playwright = _install(monkeypatch, page=page)

    rendered = _render(RenderOptions(wait_after_load=1.5, timeout_ms=5_000))

    assert rendered.final_url == URL + "?ref=final"
    assert "Output 45 W" in rendered.html
    assert browser.closed
    assert playwright.stopped
    assert page.waited_ms == 1500
    assert page.navigation_timeout == 5_000
    assert len(page.scripts) == 1
    assert browser.context_options["viewport"] == {"width": 1920, "height": 1080}
    assert browser.context_options["extra_http_headers"] == {"Accept-Language": "en-US,en;q=0.9"}


def test_navigation_timeout_becomes_render_timeout(monkeypatch):
    browser, _ = _install(
        monkeypatch, page=FakePage(PlaywrightTimeoutError("Timeout 100000ms exceeded"))
    )

    with pytest.raises(RenderTimeout) as excinfo:
        _render()

    assert excinfo.value.url == URL
    assert browser.closed


def test_navigation_failure_becomes_navigation_error(monkeypatch):
    browser, _ = _install(monkeypatch, page=FakePage(PlaywrightError("net::ERR_NAME_NOT_RESOLVED")))

    with pytest.raises(NavigationError):
        _render()

    assert browser.closed


def test_context_and_page_failures_are_mapped(monkeypatch):
    browser, _ = _install(monkeypatch, context_error=PlaywrightError("context refused"))
    with pytest.raises(NavigationError):
        _render()
    assert browser.closed

    browser, _ = _install(monkeypatch, page_error=PlaywrightError("page crashed"))
    with pytest.raises(NavigationError):
        _render()
    assert browser.closed


def test_launch_failure_is_mapped(monkeypatch):
    browser, playwright = _install(monkeypatch, launch_error=PlaywrightError("no chromium"))

    with pytest.raises(NavigationError):
        _render()

    assert not browser.closed
    assert playwright.stopped


def test_render_outside_context_manager_is_rejected():
    with pytest.raises(RuntimeError):
        asyncio.run(PlaywrightRenderer().render(URL))
