# File: a11y_scout/parser/robots_parser.py
"""a11y_scout.parser.robots_parser: robots.txt directive parsing (sitemap declarations)."""

from __future__ import annotations

from typing import List, Tuple


def extract_sitemaps(text: str) -> List[str]:
    """Return every ``Sitemap:`` URL declared in robots.txt, in file order.

    The directive name is matched case-insensitively; duplicates are dropped.

    Example:
    ```python
    from a11y_scout.parser.robots_parser import extract_sitemaps

    extract_sitemaps("User-agent: *\\nSitemap: https://example.com/sm.xml")
    # ['https://example.com/sm.xml']
    ```
    """
    found: List[str] = []
    for directive, value in _prepare_lines(text):
        if directive == "sitemap" and value and value not in found:
            found.append(value)
    return found


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Strip comments and split lines into (directive, value) pairs."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines
