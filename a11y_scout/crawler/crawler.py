# === FILE: a11y_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from typing import AsyncContextManager, Callable, List, Optional

from a11y_scout.config import CrawlBudget, ScannerConfig
from a11y_scout.crawler.fetcher import Fetcher, open_session
from a11y_scout.crawler.models import DiscoveredPage, PageSource, VisitedSet
from a11y_scout.crawler.render import Renderer, open_renderer
from a11y_scout.crawler.sitemap import SitemapResolver
from a11y_scout.crawler.traversal import TraversalEngine
from a11y_scout.errors import CrawlFatalError
from a11y_scout.logger import logger
from a11y_scout.utils import UrlFilter, extract_domain, is_eligible, normalize_url, origin_of

__all__ = ("Crawler", "RendererFactory")

#: builds the scoped render capability for one traversal
RendererFactory = Callable[[ScannerConfig, Fetcher], AsyncContextManager[Renderer]]


class Crawler:
    """Sitemap discovery followed by breadth-first traversal, within one budget."""

    def __init__(self, config: ScannerConfig, renderer_factory: Optional[RendererFactory] = None) -> None:
        self.config = config
        self._renderer_factory: RendererFactory = renderer_factory or open_renderer

    async def crawl(
        self,
        start_url: str,
        budget: CrawlBudget,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[DiscoveredPage]:
        """Deduplicated pages of the site at *start_url*, at most ``budget.max_pages``.

        Raises CrawlFatalError when the start URL is unusable or nothing at
        all could be loaded from it.
        """
        root = normalize_url(start_url)
        if root is None:
            raise CrawlFatalError(f"invalid start URL: {start_url!r}")
        url_filter = UrlFilter(extract_domain(root))
        visited = VisitedSet(budget.max_pages)
        pages: List[DiscoveredPage] = []

        logger.info("Starting crawl of %s (limits: %d pages, depth %d)", root, budget.max_pages, budget.max_depth)
        start = time.monotonic()

        async with open_session(self.config) as http:
            fetcher = Fetcher(http, self.config)

            sitemap_urls = await SitemapResolver(fetcher, url_filter).resolve(origin_of(root))
            for url in sitemap_urls:
                if len(pages) >= budget.max_pages:
                    break
                if is_eligible(url) and visited.add(url):
                    pages.append(DiscoveredPage(url=url, depth=0, source=PageSource.SITEMAP))
            if sitemap_urls:
                logger.info("Sitemap: added %d of %d page(s)", len(pages), len(sitemap_urls))

            remaining = budget.max_pages - len(pages)
            if remaining > 0:
                async with self._renderer_factory(self.config, fetcher) as renderer:
                    engine = TraversalEngine(
                        renderer,
                        url_filter,
                        visited,
                        max_depth=budget.max_depth,
                        polite_delay=self.config.polite_delay,
                    )
                    pages.extend(await engine.traverse(root, remaining, cancel))
                if not pages and engine.start_failed:
                    raise CrawlFatalError(f"start URL unreachable: {root}")

        duration = time.monotonic() - start
        logger.info("Crawl complete: %d page(s) in %.2f s", len(pages), duration)
        return pages
