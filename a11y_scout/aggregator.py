# File: a11y_scout/aggregator.py
"""a11y_scout.aggregator: severity counts and per-page breakdowns of scan issues."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, TypedDict

from a11y_scout.scan.models import Issue, Severity


class PageSummary(TypedDict):
    """Issue counts for one audited page."""

    url: str
    total: int
    critical: int
    warning: int
    info: int


@dataclass(frozen=True, slots=True)
class SeveritySummary:
    """Totals per severity; ``total`` always equals the sum of the three buckets."""

    total: int = 0
    critical: int = 0
    warning: int = 0
    info: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def summarize(issues: Iterable[Issue]) -> SeveritySummary:
    """Count issues by severity."""
    counts = Counter(issue.severity for issue in issues)
    critical = counts[Severity.CRITICAL]
    warning = counts[Severity.WARNING]
    info = counts[Severity.INFO]
    return SeveritySummary(total=critical + warning + info, critical=critical, warning=warning, info=info)


def summarize_pages(issues: Iterable[Issue]) -> List[PageSummary]:
    """Per-page counts, pages in order of first appearance."""
    grouped: Dict[str, List[Issue]] = {}
    for issue in issues:
        grouped.setdefault(issue.page_url, []).append(issue)
    pages: List[PageSummary] = []
    for url, page_issues in grouped.items():
        summary = summarize(page_issues)
        pages.append(
            {
                "url": url,
                "total": summary.total,
                "critical": summary.critical,
                "warning": summary.warning,
                "info": summary.info,
            }
        )
    return pages
