# a11y_scout/crawler/fetcher.py
"""
Fetcher module: plain HTTP GETs with a fixed timeout and no retries.

Used for robots.txt, sitemaps and the static traversal fallback. Every
failure surfaces as :class:`~a11y_scout.errors.FetchError` so callers can
skip the unit of work without caring about aiohttp internals.
"""
from __future__ import annotations

import asyncio

from aiohttp import ClientError, ClientSession, ClientTimeout

from a11y_scout.config import ScannerConfig
from a11y_scout.errors import FetchError
from a11y_scout.logger import logger


def open_session(config: ScannerConfig) -> ClientSession:
    """aiohttp session configured with the project's timeout and User-Agent."""
    return ClientSession(
        timeout=ClientTimeout(total=config.request_timeout),
        headers={"User-Agent": config.user_agent},
        raise_for_status=False,
    )


class Fetcher:
    """Single-attempt HTTP fetching on top of a caller-owned session."""

    def __init__(self, session: ClientSession, config: ScannerConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.request_timeout)

    async def fetch_text(self, url: str) -> str:
        """Body of *url* as text; anything but HTTP 200 is a FetchError."""
        text, _, _ = await self._get(url)
        return text

    async def fetch_html(self, url: str) -> tuple[str, str]:
        """HTML body of *url* and the URL it was finally served from (after redirects).

        Relative links in the document resolve against the second value, not
        against *url*.
        """
        text, ctype, final_url = await self._get(url)
        if "html" not in ctype:
            raise FetchError(url, f"not an HTML document ({ctype or 'no content type'})")
        return text, final_url

    async def _get(self, url: str) -> tuple[str, str, str]:
        try:
            async with self.session.get(url, timeout=self._timeout, allow_redirects=True) as resp:
                if resp.status != 200:
                    raise FetchError(url, f"HTTP {resp.status}")
                ctype = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                text = await resp.text(errors="replace")
                final_url = str(resp.url)
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"timed out after {self.config.request_timeout}s") from exc
        except ClientError as exc:
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc
        logger.debug("Fetched %s (%s, %d chars)", final_url, ctype or "?", len(text))
        return text, ctype, final_url
