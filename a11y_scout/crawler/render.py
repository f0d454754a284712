# a11y_scout/crawler/render.py
"""
Render capability: turn a URL into title, markup and outbound links.

Two implementations share the :class:`Renderer` protocol:

* :class:`BrowserSession` drives headless Chromium through Playwright at a
  fixed viewport and waits for network quiescence, so links injected by
  JavaScript are seen. The auditor reuses it to get a loaded page for the
  rule engine.
* :class:`StaticRenderer` downloads the raw HTML and parses it with
  BeautifulSoup. It cannot see JavaScript-only navigation.

A session is a scoped resource: one per crawl or audit operation, released
on every exit path, never shared between concurrent operations.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Protocol

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from a11y_scout.config import ScannerConfig
from a11y_scout.crawler.fetcher import Fetcher
from a11y_scout.crawler.models import RenderedPage
from a11y_scout.errors import RenderError
from a11y_scout.logger import logger
from a11y_scout.parser.html_parser import parse_html

__all__ = ("Renderer", "BrowserSession", "StaticRenderer", "open_renderer")

_CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

_COLLECT_LINKS = "els => els.map(a => a.href).filter(href => href.startsWith('http'))"


class Renderer(Protocol):
    async def render(self, url: str) -> RenderedPage: ...


class BrowserSession:
    """One headless Chromium instance with a fixed-viewport browser context."""

    def __init__(self, config: ScannerConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> BrowserSession:
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> BrowserSession:
        if self._context is not None:
            return self
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=_CHROMIUM_ARGS)
            self._context = await self._browser.new_context(
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                user_agent=self.config.user_agent,
                ignore_https_errors=True,
                # axe-core is injected as a script tag; page CSP must not block it
                bypass_csp=True,
            )
        except PlaywrightError as exc:
            await self.close()
            raise RenderError(f"cannot start headless browser: {exc.message}") from exc
        logger.debug("Browser session started")
        return self

    async def close(self) -> None:
        # each step independently: a failed launch leaves a partial session
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError as exc:
                logger.debug("Browser context close failed: %s", exc)
            self._context = None
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as exc:
                logger.debug("Browser close failed: %s", exc)
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def open_page(self, url: str) -> AsyncIterator[Page]:
        """Yield a tab that has loaded *url* and gone network-idle; the tab is always closed."""
        if self._context is None:
            raise RenderError("browser session is not started")
        page = await self._context.new_page()
        try:
            try:
                response = await page.goto(
                    url,
                    wait_until="networkidle",
                    timeout=self.config.render_timeout * 1000,
                )
            except PlaywrightTimeoutError as exc:
                raise RenderError(f"{url}: timed out after {self.config.render_timeout}s") from exc
            except PlaywrightError as exc:
                raise RenderError(f"{url}: {exc.message}") from exc
            if response is not None and response.status >= 400:
                raise RenderError(f"{url}: HTTP {response.status}")
            yield page
        finally:
            await page.close()

    async def render(self, url: str) -> RenderedPage:
        async with self.open_page(url) as page:
            try:
                title = await page.title()
                links: List[str] = await page.eval_on_selector_all("a[href]", _COLLECT_LINKS)
                html = await page.content()
            except PlaywrightError as exc:
                raise RenderError(f"{url}: {exc.message}") from exc
        return RenderedPage(url=url, title=title or None, html=html, links=links)


class StaticRenderer:
    """Fetch-and-parse fallback used when no browser is available."""

    def __init__(self, fetcher: Fetcher) -> None:
        self.fetcher = fetcher

    async def render(self, url: str) -> RenderedPage:
        html, final_url = await self.fetcher.fetch_html(url)
        parsed = parse_html(html, final_url)
        return RenderedPage(url=url, title=parsed.title, html=html, links=parsed.links)


@asynccontextmanager
async def open_renderer(config: ScannerConfig, fetcher: Fetcher) -> AsyncIterator[Renderer]:
    """Browser renderer when configured and launchable, static fetch otherwise."""
    if config.use_browser:
        session = BrowserSession(config)
        try:
            await session.start()
        except RenderError as exc:
            logger.warning(
                "%s; falling back to static HTML, JavaScript-only links will not be discovered",
                exc,
            )
        else:
            try:
                yield session
            finally:
                await session.close()
            return
    else:
        logger.info("Browser rendering disabled, JavaScript-only links will not be discovered")
    yield StaticRenderer(fetcher)
