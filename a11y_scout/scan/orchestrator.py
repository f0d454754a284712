# a11y_scout/scan/orchestrator.py
"""
Scan orchestration: crawl, audit every page, aggregate, finalize.

A broken page never sinks a scan: per-page failures are logged and
counted, and the scan completes as long as one page was audited. Only a
scan where no page could be audited (or that was cancelled) ends ``failed``.
Finalization runs on every exit path of the job body.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import List, Optional, Protocol

from a11y_scout.config import CrawlBudget, ScannerConfig
from a11y_scout.crawler.models import DiscoveredPage
from a11y_scout.errors import AuditError, ScanCancelledError, ScanFatalError
from a11y_scout.logger import logger
from a11y_scout.scan.models import Issue, Scan
from a11y_scout.scan.store import ScanStore
from a11y_scout.utils import normalize_url, remove_duplicates


class PageCrawler(Protocol):
    async def crawl(
        self, start_url: str, budget: CrawlBudget, cancel: Optional[asyncio.Event] = None
    ) -> List[DiscoveredPage]: ...


class PageAuditor(Protocol):
    async def audit(self, url: str) -> List[Issue]: ...


@dataclass
class ScanOutcome:
    """What the job body accumulated before finalization."""

    pages: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    cancelled: bool = False


class ScanOrchestrator:
    """Runs one scan job against an existing ``running`` record."""

    def __init__(
        self,
        store: ScanStore,
        crawler: PageCrawler,
        auditor: PageAuditor,
        config: ScannerConfig,
    ) -> None:
        self.store = store
        self.crawler = crawler
        self.auditor = auditor
        self.config = config

    async def run(
        self,
        scan_id: str,
        site_url: str,
        budget: CrawlBudget,
        cancel: Optional[asyncio.Event] = None,
    ) -> Scan:
        outcome = ScanOutcome()
        logger.info("Scan %s started for %s", scan_id, site_url)
        try:
            outcome.pages = await self.build_page_set(site_url, budget, cancel)
            await self._audit_pages(outcome, cancel)
            if outcome.succeeded == 0:
                raise ScanFatalError(f"none of {len(outcome.pages)} page(s) could be audited")
        except ScanCancelledError:
            outcome.cancelled = True
            logger.warning("Scan %s cancelled", scan_id)
        except ScanFatalError as exc:
            logger.error("Scan %s failed: %s", scan_id, exc)
        except Exception:
            logger.exception("Scan %s aborted", scan_id)
        finally:
            scan = await self._finalize(scan_id, outcome)
        return scan

    async def build_page_set(
        self,
        site_url: str,
        budget: CrawlBudget,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[str]:
        """Site URL first, then crawled pages; deduplicated and cut to the budget."""
        root = normalize_url(site_url) or site_url
        discovered: List[str] = []
        try:
            discovered = [page.url for page in await self.crawler.crawl(site_url, budget, cancel)]
        except ScanCancelledError:
            raise
        except Exception as exc:
            logger.error("Crawling %s failed, falling back to the site URL only: %s", site_url, exc)
        pages = remove_duplicates([root, *discovered])[: budget.max_pages]
        logger.info("Page set: %d page(s)", len(pages))
        return pages

    async def _audit_pages(self, outcome: ScanOutcome, cancel: Optional[asyncio.Event]) -> None:
        limit = asyncio.Semaphore(self.config.audit_concurrency)

        async def audit_one(url: str) -> Optional[List[Issue]]:
            async with limit:
                if cancel is not None and cancel.is_set():
                    return None
                try:
                    return await self.auditor.audit(url)
                except AuditError as exc:
                    logger.warning("Skipping page %s: %s", url, exc.reason)
                except Exception:
                    logger.exception("Skipping page %s", url)
                return None

        results = await asyncio.gather(*(audit_one(url) for url in outcome.pages))
        if cancel is not None and cancel.is_set():
            raise ScanCancelledError("scan cancelled")

        # page-set order, whatever order the audits finished in
        for url, page_issues in zip(outcome.pages, results):
            if page_issues is None:
                outcome.failed += 1
                continue
            outcome.succeeded += 1
            outcome.issues.extend(
                issue if issue.page_url == url else replace(issue, page_url=url) for issue in page_issues
            )

    async def _finalize(self, scan_id: str, outcome: ScanOutcome) -> Scan:
        if outcome.cancelled or outcome.succeeded == 0:
            return await self.store.fail(scan_id, pages_failed=outcome.failed)
        scan = await self.store.complete(
            scan_id,
            outcome.issues,
            pages_scanned=outcome.succeeded,
            pages_failed=outcome.failed,
        )
        logger.info(
            "Scan %s completed: %d page(s), %d issue(s) (%d critical, %d warning, %d info)",
            scan_id,
            scan.pages_scanned,
            scan.total_issues,
            scan.critical_issues,
            scan.warning_issues,
            scan.info_issues,
        )
        return scan
