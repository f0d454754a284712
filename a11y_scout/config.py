# === FILE: a11y_scout/config.py ===
"""
Configuration loading and validation for A11y Scout.

Pydantic describes the schema; YAML or JSON files and a handful of
environment variables feed it. The resolved :class:`ScannerConfig` is built
once per process (or per job) and passed down explicitly, inner components
never read the environment themselves.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Final, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

MAX_PAGES_CEILING: Final[int] = 500
MAX_DEPTH_CEILING: Final[int] = 10

CRAWL_MAX_PAGES_ENV: Final[str] = "CRAWL_MAX_PAGES"
CRAWL_MAX_DEPTH_ENV: Final[str] = "CRAWL_MAX_DEPTH"
SCAN_MAX_PAGES_ENV: Final[str] = "SCAN_CRAWL_MAX_PAGES"
SCAN_MAX_DEPTH_ENV: Final[str] = "SCAN_CRAWL_MAX_DEPTH"

DEFAULT_RULE_TAGS: Final[tuple[str, ...]] = ("wcag2a", "wcag2aa", "wcag21a", "wcag21aa")
DEFAULT_AXE_SCRIPT_URL: Final[str] = "https://cdn.jsdelivr.net/npm/axe-core@4.10.2/axe.min.js"


def env_limit(
    name: str,
    fallback: int,
    ceiling: int,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    """Read a positive integer limit from the environment.

    Unset, non-numeric and non-positive values give *fallback*; values above
    *ceiling* are clamped to it.
    """
    env = os.environ if environ is None else environ
    raw = env.get(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return fallback
    if value <= 0:
        return fallback
    return min(value, ceiling)


class CrawlBudget(BaseModel):
    """Page and depth ceiling for one crawl. Never mutated during a run."""
    model_config = ConfigDict(frozen=True)

    max_pages: int = Field(..., ge=1, le=MAX_PAGES_CEILING, description="Hard page limit.")
    max_depth: int = Field(..., ge=1, le=MAX_DEPTH_CEILING, description="Link-following depth limit.")


class ScannerConfig(BaseModel):
    """Settings shared by the crawler, the auditor and the scan jobs."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_agent: str = Field("A11yScout/1.0", min_length=1, description="User-Agent header.")
    request_timeout: float = Field(10.0, gt=0, description="Timeout for robots/sitemap/page fetches (seconds).")
    render_timeout: float = Field(15.0, gt=0, description="Browser navigation timeout (seconds).")
    audit_timeout: float = Field(30.0, gt=0, description="Timeout for one whole page audit (seconds).")
    polite_delay: float = Field(0.5, ge=0, description="Pause between two traversal page visits (seconds).")
    viewport_width: int = Field(1280, ge=320)
    viewport_height: int = Field(720, ge=240)
    use_browser: bool = Field(True, description="Render pages in headless Chromium during traversal.")
    rule_tags: List[str] = Field(default_factory=lambda: list(DEFAULT_RULE_TAGS), min_length=1)
    axe_script_url: str = Field(DEFAULT_AXE_SCRIPT_URL, min_length=1)
    axe_script_path: Optional[Path] = Field(None, description="Local axe.min.js; wins over axe_script_url.")
    audit_concurrency: int = Field(1, ge=1, le=4, description="Simultaneously open audit browser sessions.")

    crawl_max_pages: int = Field(
        default_factory=lambda: env_limit(CRAWL_MAX_PAGES_ENV, 100, MAX_PAGES_CEILING),
        ge=1,
        le=MAX_PAGES_CEILING,
    )
    crawl_max_depth: int = Field(
        default_factory=lambda: env_limit(CRAWL_MAX_DEPTH_ENV, 5, MAX_DEPTH_CEILING),
        ge=1,
        le=MAX_DEPTH_CEILING,
    )
    scan_max_pages: int = Field(
        default_factory=lambda: env_limit(SCAN_MAX_PAGES_ENV, 50, MAX_PAGES_CEILING),
        ge=1,
        le=MAX_PAGES_CEILING,
    )
    scan_max_depth: int = Field(
        default_factory=lambda: env_limit(SCAN_MAX_DEPTH_ENV, 5, MAX_DEPTH_CEILING),
        ge=1,
        le=MAX_DEPTH_CEILING,
    )

    store_dir: Optional[Path] = Field(None, description="Directory for JSON scan records.")

    @field_validator("rule_tags")
    @classmethod
    def _strip_tags(cls, v: List[str]) -> List[str]:
        tags = [t.strip() for t in v if t and t.strip()]
        if not tags:
            raise ValueError("rule_tags must contain at least one tag")
        return tags

    def crawl_budget(self, max_pages: Optional[int] = None, max_depth: Optional[int] = None) -> CrawlBudget:
        """Budget for a page-inventory crawl; explicit values win over the defaults."""
        return CrawlBudget(
            max_pages=self.crawl_max_pages if max_pages is None else max_pages,
            max_depth=self.crawl_max_depth if max_depth is None else max_depth,
        )

    def scan_budget(self, max_pages: Optional[int] = None, max_depth: Optional[int] = None) -> CrawlBudget:
        """Budget for the crawl that precedes a scan."""
        return CrawlBudget(
            max_pages=self.scan_max_pages if max_pages is None else max_pages,
            max_depth=self.scan_max_depth if max_depth is None else max_depth,
        )


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> ScannerConfig:
    """
    Read YAML or JSON and return a validated ScannerConfig.

    Without *path* the default ``configs/default.yaml`` is used when it
    exists, otherwise the built-in defaults (plus environment budgets).
    An explicit path that does not exist raises FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScannerConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return ScannerConfig(**data)


__all__ = [
    "CrawlBudget",
    "ScannerConfig",
    "ValidationError",
    "env_limit",
    "load_config",
    "DEFAULT_RULE_TAGS",
    "MAX_PAGES_CEILING",
    "MAX_DEPTH_CEILING",
]
