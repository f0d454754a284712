# a11y_scout/crawler/sitemap.py
"""
Sitemap discovery: robots.txt ``Sitemap:`` directives first, then the
well-known locations. The first candidate that yields pages wins; any
candidate that cannot be fetched or parsed is logged and skipped.
"""
from __future__ import annotations

from typing import Final, List, Sequence

from a11y_scout.crawler.fetcher import Fetcher
from a11y_scout.errors import DiscoveryError, FetchError
from a11y_scout.logger import logger
from a11y_scout.parser.robots_parser import extract_sitemaps
from a11y_scout.parser.sitemap_parser import SitemapDocument, parse_sitemap
from a11y_scout.utils import UrlFilter, normalize_url, remove_duplicates

WELL_KNOWN_SITEMAPS: Final[Sequence[str]] = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap/sitemap.xml",
)


class SitemapResolver:
    """Resolves the pages a site declares about itself."""

    def __init__(self, fetcher: Fetcher, url_filter: UrlFilter) -> None:
        self.fetcher = fetcher
        self.url_filter = url_filter

    async def resolve(self, origin: str) -> List[str]:
        """Normalized same-domain page URLs from the first working sitemap (may be empty)."""
        for candidate in await self.candidates(origin):
            logger.debug("Trying sitemap %s", candidate)
            try:
                urls = await self._collect(candidate)
            except DiscoveryError as exc:
                logger.debug("Sitemap candidate skipped: %s", exc)
                continue
            if urls:
                logger.info("Sitemap %s: %d page(s)", candidate, len(urls))
                return urls
        logger.info("No usable sitemap for %s, relying on link traversal", origin)
        return []

    async def candidates(self, origin: str) -> List[str]:
        """robots.txt declarations (in file order) followed by the well-known paths."""
        origin = origin.rstrip("/")
        declared: List[str] = []
        robots_url = f"{origin}/robots.txt"
        try:
            declared = extract_sitemaps(await self.fetcher.fetch_text(robots_url))
        except FetchError as exc:
            logger.debug("robots.txt unavailable: %s", exc)
        return remove_duplicates(declared + [origin + path for path in WELL_KNOWN_SITEMAPS])

    async def _collect(self, sitemap_url: str) -> List[str]:
        doc = await self._load(sitemap_url)
        urls: List[str] = []
        if doc.is_index:
            logger.debug("Sitemap index %s lists %d sub-sitemap(s)", sitemap_url, len(doc.sitemaps))
            for sub_url in doc.sitemaps:
                try:
                    sub = await self._load(sub_url)
                except DiscoveryError as exc:
                    logger.debug("Sub-sitemap skipped: %s", exc)
                    continue
                urls.extend(self._pages(sub))
            if urls:
                return remove_duplicates(urls)
        return remove_duplicates(self._pages(doc))

    async def _load(self, url: str) -> SitemapDocument:
        try:
            body = await self.fetcher.fetch_text(url)
        except FetchError as exc:
            raise DiscoveryError(str(exc)) from exc
        try:
            return parse_sitemap(body)
        except ValueError as exc:
            raise DiscoveryError(f"{url}: {exc}") from exc

    def _pages(self, doc: SitemapDocument) -> List[str]:
        pages: List[str] = []
        for loc in doc.urls:
            url = normalize_url(loc)
            if url is not None and self.url_filter.in_scope(url):
                pages.append(url)
        return pages
