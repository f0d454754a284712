# a11y_scout/crawler/traversal.py
"""
Breadth-first link traversal bounded by a page budget and a depth limit.

BFS spreads the budget across the breadth of a site instead of exhausting
it down one branch. One page that cannot be loaded is logged and skipped;
it never aborts the traversal and is never retried.
"""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, List, Optional, Tuple

from a11y_scout.crawler.models import DiscoveredPage, PageSource, VisitedSet
from a11y_scout.crawler.render import Renderer
from a11y_scout.errors import FetchError, RenderError, ScanCancelledError
from a11y_scout.logger import logger
from a11y_scout.utils import UrlFilter


class TraversalEngine:
    """Link-following phase of a crawl.

    The :class:`VisitedSet` belongs to the crawl run that created this
    engine; the engine only borrows it for the duration of :meth:`traverse`.
    """

    def __init__(
        self,
        renderer: Renderer,
        url_filter: UrlFilter,
        visited: VisitedSet,
        max_depth: int,
        polite_delay: float = 0.5,
    ) -> None:
        self.renderer = renderer
        self.url_filter = url_filter
        self.visited = visited
        self.max_depth = max_depth
        self.polite_delay = polite_delay
        self.start_failed = False

    async def traverse(
        self,
        start_url: str,
        remaining: int,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[DiscoveredPage]:
        """Visit pages breadth-first from *start_url* until *remaining* are recorded."""
        results: List[DiscoveredPage] = []
        queue: Deque[Tuple[str, int]] = deque([(start_url, 0)])
        visits = 0

        while queue and len(results) < remaining:
            if cancel is not None and cancel.is_set():
                raise ScanCancelledError("crawl cancelled")

            url, depth = queue.popleft()
            if url in self.visited or depth > self.max_depth:
                continue
            if not self.visited.add(url):
                logger.debug("Visited set full (%d), stopping traversal", self.visited.capacity)
                break

            if visits and self.polite_delay:
                await asyncio.sleep(self.polite_delay)
            visits += 1

            logger.info("Crawling %s (depth %d)", url, depth)
            try:
                page = await self.renderer.render(url)
            except (RenderError, FetchError) as exc:
                logger.warning("Failed to crawl %s: %s", url, exc)
                if url == start_url:
                    self.start_failed = True
                continue

            if depth < self.max_depth:
                for link in page.links:
                    target = self.url_filter.admit(link, url)
                    if target is not None and target not in self.visited:
                        queue.append((target, depth + 1))

            results.append(DiscoveredPage(url=url, depth=depth, source=PageSource.CRAWL, title=page.title))

        logger.info("Traversal finished: %d page(s), %d visit(s)", len(results), visits)
        return results
