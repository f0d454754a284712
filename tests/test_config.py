# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from a11y_scout.config import (
    DEFAULT_RULE_TAGS,
    MAX_PAGES_CEILING,
    CrawlBudget,
    ScannerConfig,
    env_limit,
    load_config,
)


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("user_agent: Bot/2.0\nscan_max_pages: 20", ".yaml", None),
        (json.dumps({"user_agent": "Bot/2.0", "scan_max_pages": 20}), ".json", None),
        ("user_agent: Bot/2.0\nmax_pages: 20", ".yaml", ValidationError),
        ("scan_max_pages: 0", ".yml", ValidationError),
        ("user_agent: [unclosed", ".yaml", ValueError),
        ("- a\n- b", ".yaml", TypeError),
        ("[1, 2]", ".json", TypeError),
        ("{broken", ".json", ValueError),
        ("user_agent = 'x'", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, ScannerConfig)
        assert cfg.user_agent == "Bot/2.0"
        assert cfg.scan_max_pages == 20


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_load_config_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(None)
    assert cfg == ScannerConfig()
    assert cfg.rule_tags == list(DEFAULT_RULE_TAGS)


def test_load_config_default_location(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("audit_concurrency: 2", encoding="utf-8")
    assert load_config(None).audit_concurrency == 2


@pytest.mark.parametrize(
    "raw,expected",
    [(None, 50), ("", 50), ("abc", 50), ("0", 50), ("-3", 50), ("20", 20), (" 7 ", 7), ("9999", MAX_PAGES_CEILING)],
)
def test_env_limit(raw, expected):
    environ = {} if raw is None else {"LIMIT": raw}
    assert env_limit("LIMIT", 50, MAX_PAGES_CEILING, environ) == expected


def test_budget_defaults_follow_environment(monkeypatch):
    monkeypatch.setenv("CRAWL_MAX_PAGES", "30")
    monkeypatch.setenv("CRAWL_MAX_DEPTH", "2")
    monkeypatch.setenv("SCAN_CRAWL_MAX_PAGES", "12")
    monkeypatch.delenv("SCAN_CRAWL_MAX_DEPTH", raising=False)
    cfg = ScannerConfig()

    assert cfg.crawl_budget() == CrawlBudget(max_pages=30, max_depth=2)
    assert cfg.scan_budget() == CrawlBudget(max_pages=12, max_depth=5)
    assert cfg.scan_budget(max_depth=1) == CrawlBudget(max_pages=12, max_depth=1)


def test_builtin_budget_defaults(monkeypatch):
    for name in ("CRAWL_MAX_PAGES", "CRAWL_MAX_DEPTH", "SCAN_CRAWL_MAX_PAGES", "SCAN_CRAWL_MAX_DEPTH"):
        monkeypatch.delenv(name, raising=False)
    cfg = ScannerConfig()

    assert cfg.crawl_budget() == CrawlBudget(max_pages=100, max_depth=5)
    assert cfg.scan_budget() == CrawlBudget(max_pages=50, max_depth=5)


@pytest.mark.parametrize("pages,depth", [(0, 1), (501, 1), (1, 0), (1, 11)])
def test_budget_bounds(pages, depth):
    with pytest.raises(ValidationError):
        CrawlBudget(max_pages=pages, max_depth=depth)


def test_config_is_frozen():
    cfg = ScannerConfig()
    with pytest.raises(ValidationError):
        cfg.user_agent = "changed"


def test_rule_tags_are_cleaned():
    assert ScannerConfig(rule_tags=[" wcag2a ", "", "best-practice"]).rule_tags == ["wcag2a", "best-practice"]
    with pytest.raises(ValidationError):
        ScannerConfig(rule_tags=["  "])
