"""a11y_scout.audit: page rendering + accessibility rule engine → issues."""

from a11y_scout.audit.adapter import AuditAdapter, map_severity, translate_findings

__all__ = ["AuditAdapter", "map_severity", "translate_findings"]
