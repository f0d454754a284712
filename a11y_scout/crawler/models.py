# a11y_scout/crawler/models.py
"""
Data models for the A11y Scout crawler.
"""
from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set


class PageSource(str, enum.Enum):
    """How a page was discovered."""

    SITEMAP = "sitemap"
    CRAWL = "crawl"


@dataclass(frozen=True, slots=True)
class DiscoveredPage:
    """A crawl result; identity is the normalized URL."""

    url: str
    depth: int
    source: PageSource
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


@dataclass(slots=True)
class RenderedPage:
    """What a renderer hands back for one URL: title, markup and outbound links."""

    url: str
    title: Optional[str]
    html: str
    links: List[str] = field(default_factory=list)


class VisitedSet:
    """Normalized URLs already claimed by one crawl run, capped at the page budget.

    The crawler creates exactly one instance per run and passes it to the
    sitemap phase and to the traversal phase; nothing keeps it afterwards.
    """

    __slots__ = ("_urls", "capacity")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._urls: Set[str] = set()

    def add(self, url: str) -> bool:
        """Claim *url*; False when it was already claimed or the set is full."""
        if url in self._urls or self.is_full:
            return False
        self._urls.add(url)
        return True

    @property
    def is_full(self) -> bool:
        return len(self._urls) >= self.capacity

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)
