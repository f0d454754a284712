"""a11y_scout.scan: scan records, persistence, background jobs and orchestration."""

from a11y_scout.scan.models import Issue, Scan, ScanStatus, Severity

__all__ = ["Issue", "Scan", "ScanStatus", "Severity"]
