# File: tests/conftest.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pytest
from aiohttp import web

from a11y_scout.config import CrawlBudget, ScannerConfig
from a11y_scout.crawler.models import DiscoveredPage, PageSource, RenderedPage
from a11y_scout.errors import AuditError, RenderError
from a11y_scout.scan.models import Issue, Severity

ROOT = "https://example.com"


@pytest.fixture()
def config() -> ScannerConfig:
    """
    Return a config suitable for tests: no browser, no politeness pause,
    short timeouts and explicit budgets (environment is ignored).
    """
    return ScannerConfig(
        use_browser=False,
        polite_delay=0,
        request_timeout=2.0,
        render_timeout=2.0,
        audit_timeout=2.0,
        user_agent="TestAgent/1.0",
        crawl_max_pages=100,
        crawl_max_depth=5,
        scan_max_pages=50,
        scan_max_depth=5,
    )


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


# --------------------------------------------------------------------------- #
#                               Crawl fakes                                   #
# --------------------------------------------------------------------------- #


class FakeRenderer:
    """Serves pages from an in-memory link graph and records every render call."""

    def __init__(self, graph: Dict[str, Sequence[str]], failing: Iterable[str] = ()) -> None:
        self.graph = graph
        self.failing = set(failing)
        self.calls: List[str] = []

    async def render(self, url: str) -> RenderedPage:
        self.calls.append(url)
        if url in self.failing or url not in self.graph:
            raise RenderError(f"{url}: HTTP 404")
        return RenderedPage(url=url, title=f"Title of {url}", html="<html></html>", links=list(self.graph[url]))


class RendererFactory:
    """Stand-in for ``open_renderer``; counts how often a renderer was opened."""

    def __init__(self, renderer: FakeRenderer) -> None:
        self.renderer = renderer
        self.opened = 0

    @asynccontextmanager
    async def __call__(self, config, fetcher) -> AsyncIterator[FakeRenderer]:
        self.opened += 1
        yield self.renderer


class FakeCrawler:
    def __init__(self, urls: Sequence[str] = (), error: Optional[Exception] = None) -> None:
        self.urls = list(urls)
        self.error = error
        self.budgets: List[CrawlBudget] = []

    async def crawl(self, start_url: str, budget: CrawlBudget, cancel=None) -> List[DiscoveredPage]:
        self.budgets.append(budget)
        if self.error is not None:
            raise self.error
        return [DiscoveredPage(url=u, depth=1, source=PageSource.CRAWL) for u in self.urls]


# --------------------------------------------------------------------------- #
#                               Audit fakes                                   #
# --------------------------------------------------------------------------- #


def make_issue(page_url: str, severity: Severity = Severity.WARNING, rule: str = "color-contrast") -> Issue:
    return Issue(
        type=rule,
        severity=severity,
        element="<p>text</p>",
        message="Elements must meet minimum color contrast ratio thresholds",
        page_url=page_url,
    )


class FakeAuditor:
    """Per-URL canned results: a list of issues, or an exception to raise."""

    def __init__(self, results: Dict[str, Union[List[Issue], Exception]], delay: float = 0) -> None:
        self.results = results
        self.delay = delay
        self.audited: List[str] = []

    async def audit(self, url: str) -> List[Issue]:
        self.audited.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.get(url, AuditError(url, "no such page"))
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakePage:
    def __init__(self, url: str) -> None:
        self.url = url


class FakeSession:
    """Imitates BrowserSession: async context manager with ``open_page``."""

    instances: List["FakeSession"] = []

    def __init__(self, config, fail_with: Optional[Exception] = None) -> None:
        self.config = config
        self.fail_with = fail_with
        self.closed = False
        self.pages_opened: List[str] = []
        FakeSession.instances.append(self)

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    @asynccontextmanager
    async def open_page(self, url: str) -> AsyncIterator[FakePage]:
        if self.fail_with is not None:
            raise self.fail_with
        self.pages_opened.append(url)
        yield FakePage(url)


class FakeEngine:
    """Rule engine returning a fixed axe-style result, optionally after a pause."""

    def __init__(self, result: dict, delay: float = 0) -> None:
        self.result = result
        self.delay = delay
        self.tags: List[Tuple[str, ...]] = []

    async def evaluate(self, page, rule_tags):
        self.tags.append(tuple(rule_tags))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result
