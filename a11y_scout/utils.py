# File: a11y_scout/utils.py
"""a11y_scout.utils: URL canonicalisation, domain scoping and content-type filtering."""

from __future__ import annotations

import re
from typing import Collection, Final, List, Optional, Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

from a11y_scout.logger import logger

__all__: Sequence[str] = (
    "UrlFilter",
    "normalize_url",
    "is_same_origin",
    "is_eligible",
    "extract_domain",
    "origin_of",
    "remove_duplicates",
)

_EXCLUDED_EXTENSIONS: Final[re.Pattern[str]] = re.compile(
    r"\.(pdf|jpg|jpeg|png|gif|svg|webp|ico|zip|tar|gz|mp4|mp3|avi|mov|wmv"
    r"|doc|docx|xls|xlsx|ppt|pptx|css|js|json|xml|woff|woff2|ttf|eot)$",
    re.IGNORECASE,
)

_EXCLUDED_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"/api/",
        r"/download/",
        r"/logout",
        r"/cart",
        r"/checkout",
        r"/wp-admin",
        r"/wp-json",
        r"/feed/?$",
        r"mailto:",
        r"tel:",
        r"javascript:",
    )
)


def normalize_url(raw: str, base: Optional[str] = None) -> Optional[str]:
    """Canonical absolute form of *raw*, or None when it is not a usable http(s) URL.

    Relative references resolve against *base*; the fragment is dropped,
    scheme and host are lower-cased and trailing slashes removed, so
    ``https://Example.com/a/#top`` and ``https://example.com/a`` are one page.
    """
    if not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not candidate:
        return None
    if base is not None:
        try:
            candidate = urljoin(base, candidate)
        except ValueError:
            return None
    elif "://" not in candidate and not candidate.lower().startswith(("mailto:", "tel:", "javascript:")):
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        logger.debug("Malformed URL skipped: %r", raw)
        return None

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not hostname:
        return None

    host = f"[{hostname}]" if ":" in hostname else hostname
    netloc = host if port is None else f"{host}:{port}"
    path = parts.path.rstrip("/")
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def extract_domain(url: str) -> str:
    """Lower-case hostname of *url* ("" when there is none)."""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def origin_of(url: str) -> str:
    """``scheme://host[:port]`` part of an absolute URL."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "", "", ""))


def is_same_origin(url: str, base_domain: str) -> bool:
    """Hostname-only comparison: scheme and port do not take a URL out of scope."""
    host = extract_domain(url)
    return bool(host) and host == base_domain.lower()


def is_eligible(url: str) -> bool:
    """False for binary/media/asset URLs and for non-content paths (API, cart, admin, feeds...)."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    if _EXCLUDED_EXTENSIONS.search(path):
        return False
    return not any(pattern.search(url) for pattern in _EXCLUDED_PATTERNS)


class UrlFilter:
    """Normalisation plus domain and content-type scoping for one crawl."""

    __slots__ = ("base_domain",)

    def __init__(self, base_domain: str) -> None:
        self.base_domain = base_domain.lower()

    def in_scope(self, url: str) -> bool:
        return is_same_origin(url, self.base_domain)

    def admit(self, raw: str, base: Optional[str] = None) -> Optional[str]:
        """Normalized URL when *raw* is on the crawl's host and eligible, else None."""
        url = normalize_url(raw, base)
        if url is None or not self.in_scope(url) or not is_eligible(url):
            return None
        return url


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Drop duplicate URLs while keeping the original order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
