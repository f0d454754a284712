# File: tests/test_audit.py
from __future__ import annotations

from functools import partial

import pytest

from a11y_scout.audit.adapter import (
    BEST_PRACTICE,
    CONTEXT_SNIPPET_LENGTH,
    ELEMENT_SNIPPET_LENGTH,
    MANUAL_REVIEW_PREFIX,
    MANUAL_REVIEW_SUFFIX,
    AuditAdapter,
    format_wcag_tags,
    map_severity,
    translate_findings,
)
from a11y_scout.errors import AuditError, RenderError
from a11y_scout.scan.models import Severity

from conftest import ROOT, FakeEngine, FakeSession

AXE_RESULT = {
    "violations": [
        {
            "id": "image-alt",
            "impact": "critical",
            "description": "Ensures <img> elements have alternate text",
            "help": "Images must have alternate text",
            "helpUrl": "https://dequeuniversity.com/rules/axe/4.10/image-alt",
            "tags": ["cat.text-alternatives", "wcag2a", "wcag111"],
            "nodes": [
                {"html": '<img src="a.png">', "target": ["img:nth-child(1)"]},
                {"html": '<img src="b.png">', "target": ["img:nth-child(2)"]},
            ],
        },
        {
            "id": "region",
            "impact": "moderate",
            "description": "Ensures all page content is contained by landmarks",
            "help": "All page content should be contained by landmarks",
            "helpUrl": "https://dequeuniversity.com/rules/axe/4.10/region",
            "tags": ["cat.keyboard", "best-practice"],
            "nodes": [{"html": "<div>" + "x" * 500 + "</div>", "target": [["#host", "span"]]}],
        },
    ],
    "incomplete": [
        {
            "id": "color-contrast",
            "impact": "serious",
            "description": "Ensures the contrast between foreground and background colors meets WCAG 2 AA",
            "help": "Elements must meet minimum color contrast ratio thresholds",
            "helpUrl": "https://dequeuniversity.com/rules/axe/4.10/color-contrast",
            "tags": ["wcag2aa", "wcag143"],
            "nodes": [{"html": "<p>faint</p>", "target": ["p"]}],
        }
    ],
}


@pytest.mark.parametrize(
    "impact,expected",
    [
        ("critical", Severity.CRITICAL),
        ("serious", Severity.CRITICAL),
        ("SERIOUS", Severity.CRITICAL),
        ("moderate", Severity.WARNING),
        ("minor", Severity.INFO),
        ("unknown", Severity.INFO),
        (None, Severity.INFO),
        (3, Severity.INFO),
    ],
)
def test_map_severity(impact, expected):
    assert map_severity(impact) is expected


def test_format_wcag_tags():
    assert format_wcag_tags(["cat.aria", "wcag2a", "wcag412"]) == "WCAG2A, WCAG412"
    assert format_wcag_tags(["best-practice"]) == BEST_PRACTICE
    assert format_wcag_tags([]) == BEST_PRACTICE


def test_one_issue_per_node():
    issues = translate_findings(AXE_RESULT, ROOT)

    assert [i.type for i in issues] == ["image-alt", "image-alt", "region", "color-contrast"]
    assert all(i.page_url == ROOT for i in issues)
    first = issues[0]
    assert first.severity is Severity.CRITICAL
    assert first.impact == "critical"
    assert first.selector == "img:nth-child(1)"
    assert first.message == "Ensures <img> elements have alternate text"
    assert first.suggestion == "Images must have alternate text"
    assert first.help_url.endswith("/image-alt")
    assert first.wcag_level == "WCAG2A, WCAG111"


def test_snippets_are_truncated():
    region = translate_findings(AXE_RESULT, ROOT)[2]

    assert len(region.element) == ELEMENT_SNIPPET_LENGTH
    assert len(region.context) == CONTEXT_SNIPPET_LENGTH
    assert region.severity is Severity.WARNING
    assert region.selector == "#host span"
    assert region.wcag_level == BEST_PRACTICE


def test_incomplete_findings_need_manual_review():
    review = translate_findings(AXE_RESULT, ROOT)[3]

    # "serious" would be critical as a violation; undecided findings are info
    assert review.severity is Severity.INFO
    assert review.impact == "serious"
    assert review.message.startswith(MANUAL_REVIEW_PREFIX)
    assert review.suggestion.endswith(MANUAL_REVIEW_SUFFIX)


def test_missing_fields_are_tolerated():
    result = {"violations": [{"id": "odd", "nodes": [{}]}], "incomplete": None}
    [issue] = translate_findings(result, ROOT)

    assert issue.severity is Severity.INFO
    assert issue.element == ""
    assert issue.selector is None
    assert issue.context is None
    assert translate_findings({}, ROOT) == []


@pytest.mark.asyncio()
async def test_audit_runs_engine_with_rule_tags(config):
    engine = FakeEngine(AXE_RESULT)
    FakeSession.instances.clear()
    adapter = AuditAdapter(config, session_factory=FakeSession, engine=engine)

    issues = await adapter.audit(f"{ROOT}/about")

    assert len(issues) == 4
    assert {i.page_url for i in issues} == {f"{ROOT}/about"}
    assert engine.tags == [tuple(config.rule_tags)]
    [session] = FakeSession.instances
    assert session.closed
    assert session.pages_opened == [f"{ROOT}/about"]


@pytest.mark.asyncio()
async def test_audit_timeout_fails_page(config):
    engine = FakeEngine(AXE_RESULT, delay=5)
    cfg = config.model_copy(update={"audit_timeout": 0.05})
    FakeSession.instances.clear()
    adapter = AuditAdapter(cfg, session_factory=FakeSession, engine=engine)

    with pytest.raises(AuditError) as exc_info:
        await adapter.audit(ROOT)
    assert "timed out" in exc_info.value.reason
    assert FakeSession.instances[0].closed


@pytest.mark.asyncio()
async def test_render_failure_fails_page(config):
    factory = partial(FakeSession, fail_with=RenderError(f"{ROOT}: HTTP 500"))
    adapter = AuditAdapter(config, session_factory=factory, engine=FakeEngine(AXE_RESULT))

    with pytest.raises(AuditError) as exc_info:
        await adapter.audit(ROOT)
    assert exc_info.value.url == ROOT
    assert "HTTP 500" in exc_info.value.reason
