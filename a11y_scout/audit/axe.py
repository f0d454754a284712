# a11y_scout/audit/axe.py
"""
axe-core binding: inject the rule engine into a loaded Playwright page and
run it restricted to a set of rule tags.

The engine's raw result is returned as plain JSON data
(``{"violations": [...], "incomplete": [...]}``); translating it into
issues is the adapter's job.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from playwright.async_api import Error as PlaywrightError, Page

from a11y_scout.errors import AuditError

_RUN_AXE = """
tags => axe.run(document, {runOnly: {type: 'tag', values: tags}})
    .then(r => ({violations: r.violations, incomplete: r.incomplete}))
"""


class AxeEngine:
    """Runs axe-core inside the page under audit."""

    def __init__(self, script_url: str, script_path: Optional[Path] = None) -> None:
        self.script_url = script_url
        self.script_path = script_path

    async def evaluate(self, page: Page, rule_tags: Sequence[str]) -> Dict[str, Any]:
        try:
            if self.script_path is not None:
                await page.add_script_tag(path=str(self.script_path))
            else:
                await page.add_script_tag(url=self.script_url)
            result = await page.evaluate(_RUN_AXE, list(rule_tags))
        except PlaywrightError as exc:
            raise AuditError(page.url, f"axe-core failed: {exc.message}") from exc
        if not isinstance(result, dict):
            raise AuditError(page.url, "axe-core returned no result")
        return result
