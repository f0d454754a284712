"""a11y_scout.report: scan report export used by the CLI."""

from a11y_scout.report.json_report import build_report, render_json

__all__ = ["build_report", "render_json"]
