# a11y_scout/scan/models.py
"""
Scan record, issue shape and the scan lifecycle.

    pending → running → completed | failed

``completed`` and ``failed`` are absorbing; leaving them raises
:class:`~a11y_scout.errors.ScanStateError`. Counts are only ever written by
:meth:`Scan.complete`, from the issues it is given.
"""
from __future__ import annotations

import enum
import json
import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from a11y_scout.errors import ScanStateError


class Severity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ScanStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanStatus.COMPLETED, ScanStatus.FAILED)


_TRANSITIONS: Dict[ScanStatus, frozenset[ScanStatus]] = {
    ScanStatus.PENDING: frozenset({ScanStatus.RUNNING, ScanStatus.FAILED}),
    ScanStatus.RUNNING: frozenset({ScanStatus.COMPLETED, ScanStatus.FAILED}),
    ScanStatus.COMPLETED: frozenset(),
    ScanStatus.FAILED: frozenset(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Issue:
    """One accessibility finding on one DOM node of one page."""

    type: str
    severity: Severity
    element: str
    message: str
    page_url: str
    selector: Optional[str] = None
    suggestion: Optional[str] = None
    help_url: Optional[str] = None
    context: Optional[str] = None
    wcag_level: Optional[str] = None
    impact: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Issue:
        return cls(**{**data, "severity": Severity(data["severity"])})


@dataclass(slots=True)
class Scan:
    """Audit job record for one site."""

    site_url: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: ScanStatus = ScanStatus.PENDING
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    total_issues: int = 0
    critical_issues: int = 0
    warning_issues: int = 0
    info_issues: int = 0
    pages_scanned: int = 0
    pages_failed: int = 0
    issues: List[Issue] = field(default_factory=list)
    #: "<hostname>:<pid>" of the process running the job
    owner: Optional[str] = None

    # -- lifecycle ---------------------------------------------------------
    def _transition(self, target: ScanStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise ScanStateError(f"scan {self.id}: cannot go from {self.status.value} to {target.value}")
        self.status = target

    def start(self) -> None:
        self._transition(ScanStatus.RUNNING)

    def complete(self, issues: List[Issue], pages_scanned: int, pages_failed: int = 0) -> None:
        # local import: aggregator imports this module
        from a11y_scout.aggregator import summarize

        self._transition(ScanStatus.COMPLETED)
        summary = summarize(issues)
        self.issues = list(issues)
        self.total_issues = summary.total
        self.critical_issues = summary.critical
        self.warning_issues = summary.warning
        self.info_issues = summary.info
        self.pages_scanned = pages_scanned
        self.pages_failed = pages_failed
        self.completed_at = utcnow()

    def fail(self, pages_failed: int = 0) -> None:
        self._transition(ScanStatus.FAILED)
        self.issues = []
        self.total_issues = self.critical_issues = self.warning_issues = self.info_issues = 0
        self.pages_scanned = 0
        self.pages_failed = pages_failed
        self.completed_at = utcnow()

    # -- serialisation -----------------------------------------------------
    def copy(self) -> Scan:
        return replace(self, issues=list(self.issues))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "site_url": self.site_url,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_issues": self.total_issues,
            "critical_issues": self.critical_issues,
            "warning_issues": self.warning_issues,
            "info_issues": self.info_issues,
            "pages_scanned": self.pages_scanned,
            "pages_failed": self.pages_failed,
            "issues": [issue.to_dict() for issue in self.issues],
            "owner": self.owner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Scan:
        completed = data.get("completed_at")
        return cls(
            id=data["id"],
            site_url=data["site_url"],
            status=ScanStatus(data["status"]),
            started_at=datetime.fromisoformat(data["started_at"]),
            completed_at=datetime.fromisoformat(completed) if completed else None,
            total_issues=data.get("total_issues", 0),
            critical_issues=data.get("critical_issues", 0),
            warning_issues=data.get("warning_issues", 0),
            info_issues=data.get("info_issues", 0),
            pages_scanned=data.get("pages_scanned", 0),
            pages_failed=data.get("pages_failed", 0),
            issues=[Issue.from_dict(item) for item in data.get("issues", [])],
            owner=data.get("owner"),
        )

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
