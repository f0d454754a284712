# File: a11y_scout/engine.py
"""a11y_scout.engine: public facade, crawling a site inventory and running scan jobs."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from a11y_scout.audit.adapter import AuditAdapter
from a11y_scout.config import ScannerConfig
from a11y_scout.crawler.crawler import Crawler
from a11y_scout.crawler.models import DiscoveredPage
from a11y_scout.logger import logger
from a11y_scout.scan.jobs import JobQueue
from a11y_scout.scan.models import Scan
from a11y_scout.scan.orchestrator import PageAuditor, PageCrawler, ScanOrchestrator
from a11y_scout.scan.store import ScanStore

__all__ = ["Engine"]


class Engine:
    """Facade for the CLI and for embedding applications.

    ``start_scan`` acknowledges immediately; callers poll ``get_scan`` (or
    await ``wait_for``) to see the job reach ``completed`` or ``failed``.
    """

    def __init__(
        self,
        config: ScannerConfig,
        *,
        store: Optional[ScanStore] = None,
        crawler: Optional[PageCrawler] = None,
        auditor: Optional[PageAuditor] = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else ScanStore(config.store_dir)
        self.crawler: PageCrawler = crawler if crawler is not None else Crawler(config)
        self.auditor: PageAuditor = auditor if auditor is not None else AuditAdapter(config)
        self.jobs = JobQueue()

    async def start_crawl(
        self,
        start_url: str,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
    ) -> List[DiscoveredPage]:
        """Discover the pages of a site (page-inventory seeding); errors propagate."""
        budget = self.config.crawl_budget(max_pages, max_depth)
        return await self.crawler.crawl(start_url, budget)

    async def start_scan(
        self,
        site_url: str,
        max_pages: Optional[int] = None,
        max_depth: Optional[int] = None,
    ) -> str:
        """Create a ``running`` scan record, schedule the job and return its id."""
        budget = self.config.scan_budget(max_pages, max_depth)
        scan = await self.store.create(site_url)
        orchestrator = ScanOrchestrator(self.store, self.crawler, self.auditor, self.config)

        async def job(cancel: asyncio.Event) -> Scan:
            return await orchestrator.run(scan.id, site_url, budget, cancel)

        self.jobs.submit(scan.id, job)
        logger.info("Scan %s queued for %s (%d pages, depth %d)", scan.id, site_url, budget.max_pages, budget.max_depth)
        return scan.id

    def get_scan(self, scan_id: str) -> Optional[Scan]:
        return self.store.get(scan_id)

    async def wait_for(self, scan_id: str, timeout: Optional[float] = None) -> Scan:
        """Wait for a scan job to finish and return its terminal record."""
        task = self.jobs.task(scan_id)
        if task is not None:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        scan = self.store.get(scan_id)
        if scan is None:
            raise KeyError(scan_id)
        return scan

    def cancel_scan(self, scan_id: str) -> bool:
        """Request cancellation; the scan ends ``failed`` at its next checkpoint."""
        return self.jobs.cancel(scan_id)

    async def reconcile(self) -> List[str]:
        """Startup pass: fail records that no live job owns."""
        return await self.store.reconcile_orphans(keep=self.jobs.running())

    async def aclose(self) -> None:
        """Let running jobs reach their terminal state."""
        await self.jobs.join()
