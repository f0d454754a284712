"""a11y_scout.crawler: bounded site discovery (sitemap + breadth-first traversal)."""

from a11y_scout.crawler.crawler import Crawler
from a11y_scout.crawler.models import DiscoveredPage, PageSource, RenderedPage, VisitedSet

__all__ = ["Crawler", "DiscoveredPage", "PageSource", "RenderedPage", "VisitedSet"]
