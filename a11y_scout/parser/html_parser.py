# === FILE: a11y_scout/parser/html_parser.py ===
"""HTML parsing for the static (non-browser) traversal path.

Only what link discovery needs is extracted:

* title: document <title> text or ``None`` if absent.
* links: absolute targets of every ``<a href="…">`` in document order,
  deduplicated. Filtering (domain, eligibility) is left to the caller.

Anchors generated by JavaScript are invisible here; that is the price of the
static path and the reason the browser renderer is preferred.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

__all__: Sequence[str] = ("ParsedPage", "parse_html")


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: Optional[str]
    links: list[str] = field(default_factory=list)


def parse_html(html: str, base_url: str) -> ParsedPage:
    """Parse raw markup served from *base_url*; a ``<base href>`` overrides it for links."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else None

    link_base = base_url
    base_tag = soup.find("base", href=True)
    if base_tag is not None:
        link_base = _resolve(base_url, base_tag.get("href")) or base_url

    seen: set[str] = set()
    links: list[str] = []
    for tag in soup.find_all("a", href=True):
        absolute = _resolve(link_base, tag.get("href"))
        if absolute is not None and absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    return ParsedPage(url=base_url, title=title or None, links=links)


def _resolve(base: str, href: object) -> Optional[str]:
    if not isinstance(href, str) or not href.strip():
        return None
    try:
        return urljoin(base, href.strip())
    except ValueError:
        # e.g. an unbalanced IPv6 bracket
        return None
