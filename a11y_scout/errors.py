# File: a11y_scout/errors.py
"""a11y_scout.errors: exception hierarchy shared by the crawler, the auditor and the scan job."""

from __future__ import annotations

__all__ = (
    "A11yScoutError",
    "DiscoveryError",
    "FetchError",
    "RenderError",
    "AuditError",
    "CrawlFatalError",
    "ScanFatalError",
    "ScanCancelledError",
    "ScanStateError",
)


class A11yScoutError(Exception):
    """Base class for every error raised by the package."""


class DiscoveryError(A11yScoutError):
    """A robots.txt or sitemap candidate could not be fetched or parsed."""


class FetchError(A11yScoutError):
    """A page could not be downloaded as HTML."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class RenderError(A11yScoutError):
    """The headless browser could not load a page (or could not start at all)."""


class AuditError(A11yScoutError):
    """A page could not be audited (render timeout, rule engine failure)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class CrawlFatalError(A11yScoutError):
    """The crawl as a whole is unusable, e.g. the start URL is unreachable."""


class ScanFatalError(A11yScoutError):
    """No page of a scan could be audited."""


class ScanCancelledError(A11yScoutError):
    """Cancellation was requested while a crawl or scan was running."""


class ScanStateError(A11yScoutError):
    """Illegal scan lifecycle transition (terminal states are absorbing)."""
