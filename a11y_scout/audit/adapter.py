# a11y_scout/audit/adapter.py
"""
Audit adapter: render one page, run the rule engine on it and translate the
engine's findings into :class:`~a11y_scout.scan.models.Issue` records.

Translation rules
-----------------
* every violation produces one issue per affected DOM node, severity taken
  from :data:`IMPACT_SEVERITY` (unknown or missing impact → ``info``);
* every "incomplete" finding (the engine could not decide) produces one
  ``info`` issue per node, flagged as needing manual review;
* HTML snippets are cut to :data:`ELEMENT_SNIPPET_LENGTH` characters for
  identification and :data:`CONTEXT_SNIPPET_LENGTH` for context.

No retries: a timeout or engine failure fails the whole page with
:class:`~a11y_scout.errors.AuditError`.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Final, Iterable, List, Mapping, Optional, Protocol, Sequence

from a11y_scout.audit.axe import AxeEngine
from a11y_scout.config import ScannerConfig
from a11y_scout.crawler.render import BrowserSession
from a11y_scout.errors import AuditError, RenderError
from a11y_scout.logger import logger
from a11y_scout.scan.models import Issue, Severity

ELEMENT_SNIPPET_LENGTH: Final[int] = 100
CONTEXT_SNIPPET_LENGTH: Final[int] = 300
MANUAL_REVIEW_PREFIX: Final[str] = "Needs manual review: "
MANUAL_REVIEW_SUFFIX: Final[str] = " - This requires manual verification."
BEST_PRACTICE: Final[str] = "Best Practice"

#: engine impact → triage severity; serious and critical share a bucket,
#: the native value survives on Issue.impact
IMPACT_SEVERITY: Final[Mapping[str, Severity]] = {
    "critical": Severity.CRITICAL,
    "serious": Severity.CRITICAL,
    "moderate": Severity.WARNING,
    "minor": Severity.INFO,
}


class RuleEngine(Protocol):
    async def evaluate(self, page: Any, rule_tags: Sequence[str]) -> Dict[str, Any]: ...


def map_severity(impact: Optional[str]) -> Severity:
    """Total mapping from the engine's impact scale to the three severities."""
    if not isinstance(impact, str):
        return Severity.INFO
    return IMPACT_SEVERITY.get(impact.lower(), Severity.INFO)


def format_wcag_tags(tags: Iterable[str]) -> str:
    """``["wcag2a", "cat.color"]`` → ``"WCAG2A"``; no WCAG tag → ``"Best Practice"``."""
    wcag = [tag.upper() for tag in tags if isinstance(tag, str) and tag.startswith("wcag")]
    return ", ".join(wcag) or BEST_PRACTICE


def _selector(target: Any) -> Optional[str]:
    if not target:
        return None
    if isinstance(target, str):
        return target
    # shadow-DOM targets come as nested lists
    parts = [" ".join(t) if isinstance(t, list) else str(t) for t in target]
    return ", ".join(parts) or None


def _node_issue(finding: Mapping[str, Any], node: Mapping[str, Any], page_url: str, *, manual: bool) -> Issue:
    html = node.get("html") or ""
    description = finding.get("description") or ""
    help_text = finding.get("help") or None
    impact = finding.get("impact") if isinstance(finding.get("impact"), str) else None
    if manual:
        severity = Severity.INFO
        message = MANUAL_REVIEW_PREFIX + description
        suggestion = f"{help_text or ''}{MANUAL_REVIEW_SUFFIX}"
    else:
        severity = map_severity(impact)
        message = description
        suggestion = help_text
    return Issue(
        type=str(finding.get("id") or "unknown"),
        severity=severity,
        element=html[:ELEMENT_SNIPPET_LENGTH],
        message=message,
        page_url=page_url,
        selector=_selector(node.get("target")),
        suggestion=suggestion,
        help_url=finding.get("helpUrl") or None,
        context=html[:CONTEXT_SNIPPET_LENGTH] or None,
        wcag_level=format_wcag_tags(finding.get("tags") or []),
        impact=impact,
    )


def translate_findings(result: Mapping[str, Any], page_url: str) -> List[Issue]:
    """Engine result → issues for *page_url*; violations first, then review items."""
    issues: List[Issue] = []
    for finding in result.get("violations") or []:
        for node in finding.get("nodes") or []:
            issues.append(_node_issue(finding, node, page_url, manual=False))
    for finding in result.get("incomplete") or []:
        for node in finding.get("nodes") or []:
            issues.append(_node_issue(finding, node, page_url, manual=True))
    return issues


class AuditAdapter:
    """Audits one URL at a time; each audit owns its browser session."""

    def __init__(
        self,
        config: ScannerConfig,
        *,
        session_factory: Optional[Callable[[ScannerConfig], BrowserSession]] = None,
        engine: Optional[RuleEngine] = None,
    ) -> None:
        self.config = config
        self._session_factory = session_factory or BrowserSession
        self._engine: RuleEngine = engine or AxeEngine(config.axe_script_url, config.axe_script_path)

    async def audit(self, url: str) -> List[Issue]:
        try:
            issues = await asyncio.wait_for(self._audit(url), timeout=self.config.audit_timeout)
        except asyncio.TimeoutError as exc:
            raise AuditError(url, f"audit timed out after {self.config.audit_timeout}s") from exc
        except RenderError as exc:
            raise AuditError(url, str(exc)) from exc
        logger.info("Audited %s: %d issue(s)", url, len(issues))
        return issues

    async def _audit(self, url: str) -> List[Issue]:
        async with self._session_factory(self.config) as session:
            async with session.open_page(url) as page:
                result = await self._engine.evaluate(page, self.config.rule_tags)
        return translate_findings(result, url)
