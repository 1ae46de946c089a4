"""Headless Chromium rendering via Playwright."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import RenderOptions
from .errors import NavigationError, RenderTimeout
from .images import RENDERED_HEIGHT_ATTR, RENDERED_SRC_ATTR, RENDERED_WIDTH_ATTR
from .models import RenderedPage

logger = logging.getLogger("product_distill")

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

# Copies live image state into attributes so it survives serialization.
_ANNOTATE_IMAGES_SCRIPT = f"""
() => {{
  for (const img of document.querySelectorAll("img")) {{
    img.setAttribute("{RENDERED_SRC_ATTR}", img.currentSrc || img.src || "");
    img.setAttribute("{RENDERED_WIDTH_ATTR}", String(img.naturalWidth || img.width || 0));
    img.setAttribute("{RENDERED_HEIGHT_ATTR}", String(img.naturalHeight || img.height || 0));
  }}
}}
"""


class PlaywrightRenderer:
    """Render URLs to HTML, one short-lived browser per call.

    The Playwright driver is started once when the renderer is entered as an
    async context manager and shared by every render made through it.
    """

    def __init__(self, options: Optional[RenderOptions] = None) -> None:
        self.options = options or RenderOptions()
        self._playwright: Optional[Playwright] = None

    async def __aenter__(self) -> "PlaywrightRenderer":
        self._playwright = await async_playwright().start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
        self._playwright = None

    async def render(
        self, url: str, options: Optional[RenderOptions] = None
    ) -> RenderedPage:
        """Navigate to ``url`` and return the rendered HTML and final URL."""
        if self._playwright is None:
            raise RuntimeError("PlaywrightRenderer must be used as an async context manager")
        options = options or self.options

        browser: Optional[Browser] = None
        try:
            browser = await self._playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
            context = await browser.new_context(
                viewport={
                    "width": options.viewport_width,
                    "height": options.viewport_height,
                },
                user_agent=options.user_agent,
                extra_http_headers=options.extra_headers,
            )
            page = await context.new_page()
            page.set_default_navigation_timeout(options.timeout_ms)
            page.set_default_timeout(options.timeout_ms)
            logger.info("Loading %s", url)
            await page.goto(url, wait_until=options.wait_until)
            if options.wait_after_load:
                await page.wait_for_timeout(int(options.wait_after_load * 1000))
            await page.evaluate(_ANNOTATE_IMAGES_SCRIPT)
            html = await page.content()
            final_url = page.url
        except PlaywrightTimeoutError as exc:
            raise RenderTimeout(url, str(exc)) from exc
        except PlaywrightError as exc:
            raise NavigationError(url, str(exc)) from exc
        finally:
            if browser is not None:
                await browser.close()
        logger.debug("Rendered %s (%d chars)", final_url, len(html))
        return RenderedPage(html=html, final_url=final_url)
