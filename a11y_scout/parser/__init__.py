"""a11y_scout.parser: robots.txt, sitemap and HTML parsing helpers."""

from a11y_scout.parser.html_parser import ParsedPage, parse_html
from a11y_scout.parser.robots_parser import extract_sitemaps
from a11y_scout.parser.sitemap_parser import SitemapDocument, parse_sitemap

__all__ = ["ParsedPage", "parse_html", "extract_sitemaps", "SitemapDocument", "parse_sitemap"]
