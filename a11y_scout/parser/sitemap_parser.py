# File: a11y_scout/parser/sitemap_parser.py
"""a11y_scout.parser.sitemap_parser: parsing of sitemap.xml and sitemap index files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union

from lxml import etree


@dataclass(slots=True)
class SitemapDocument:
    """Locations found in one sitemap file.

    ``sitemaps`` is non-empty for a sitemap index (``<sitemap><loc>``),
    ``urls`` holds the page entries (``<url><loc>``).
    """

    sitemaps: List[str] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.sitemaps)


def parse_sitemap(xml_content: Union[str, bytes]) -> SitemapDocument:
    """Parse sitemap XML and return its ``<loc>`` entries split by kind.

    Args:
        xml_content: body of a sitemap.xml (text or raw bytes).

    Returns:
        SitemapDocument with index and page locations.

    Raises:
        ValueError: the content is not an XML document.

    Example:
    ```python
    from a11y_scout.parser.sitemap_parser import parse_sitemap

    doc = parse_sitemap(open("sitemap.xml", "rb").read())
    print(doc.is_index, doc.urls)
    ```
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    if not data.strip():
        raise ValueError("empty sitemap document")

    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"malformed sitemap XML: {exc}") from exc
    if root is None:
        raise ValueError("malformed sitemap XML")

    return SitemapDocument(
        sitemaps=_locs(root, ".//{*}sitemap/{*}loc"),
        urls=_locs(root, ".//{*}url/{*}loc"),
    )


def _locs(root: etree._Element, path: str) -> List[str]:
    return [loc.text.strip() for loc in root.findall(path) if loc.text and loc.text.strip()]
