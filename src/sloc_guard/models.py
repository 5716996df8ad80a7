"""Data models for check results"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .counting.models import LineStats

CONTENT_KIND = "content"


class Severity(str, Enum):
    OK = "ok"
    WARN = "warn"
    FAIL = "fail"


class Category(str, Enum):
    NEW = "new"
    GRANDFATHERED = "grandfathered"
    WORSENED = "worsened"


@dataclass
class Finding:
    """One evaluated file or directory.

    ``kind`` is ``"content"`` for line limits, otherwise the structure
    violation type (``files``, ``dirs``, ``depth``, ``denied_file`` ...).
    """

    path: str
    kind: str
    actual: int
    limit: int
    severity: Severity
    category: Category = Category.NEW
    reason: Optional[str] = None
    suggestions: Optional[List[str]] = None
    stats: Optional[LineStats] = None
    file_hash: Optional[str] = None
    detail: Optional[str] = None
    rule: Optional[str] = None

    @property
    def is_content(self) -> bool:
        return self.kind == CONTENT_KIND

    @property
    def is_failure(self) -> bool:
        return self.severity is Severity.FAIL

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARN and self.category is not Category.GRANDFATHERED

    @property
    def is_grandfathered(self) -> bool:
        return self.category is Category.GRANDFATHERED and self.severity is not Severity.FAIL

    @property
    def is_violation(self) -> bool:
        return self.severity is not Severity.OK

    def sort_key(self):
        return (self.path, self.kind, self.detail or "")

    def to_dict(self) -> dict:
        data = {
            "path": self.path,
            "kind": self.kind,
            "actual": self.actual,
            "limit": self.limit,
            "severity": self.severity.value,
            "category": self.category.value,
        }
        if self.reason:
            data["reason"] = self.reason
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        if self.detail:
            data["detail"] = self.detail
        if self.stats is not None:
            data["stats"] = self.stats.to_dict()
        return data


@dataclass
class Summary:
    total_files: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    grandfathered: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_files": self.total_files,
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "grandfathered": self.grandfathered,
        }


@dataclass
class CheckReport:
    """Everything a formatter needs to render one check run."""

    findings: List[Finding] = field(default_factory=list)
    files_checked: int = 0
    skipped: int = 0
    errors: int = 0
    improved: List[str] = field(default_factory=list)
    notices: List[str] = field(default_factory=list)
    strict: bool = False
    warn_only: bool = False
    baseline_updated: bool = False
    # strict ratchet: recorded violations that changed or disappeared
    baseline_stale: bool = False
    duration_ms: int = 0

    @property
    def violations(self) -> List[Finding]:
        return [f for f in self.findings if f.is_violation]

    @property
    def summary(self) -> Summary:
        content = [f for f in self.findings if f.is_content]
        summary = Summary(total_files=self.files_checked)
        for finding in self.findings:
            if finding.is_failure:
                summary.failed += 1
            elif finding.is_grandfathered:
                summary.grandfathered += 1
            elif finding.is_warning:
                summary.warnings += 1
        summary.passed = sum(1 for f in content if f.severity is Severity.OK)
        return summary

    @property
    def has_failures(self) -> bool:
        if self.warn_only:
            return False
        if any(f.is_failure for f in self.findings) or self.baseline_stale:
            return True
        return self.strict and any(f.is_warning for f in self.findings)

    @property
    def exit_code(self) -> int:
        return 1 if self.has_failures else 0

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "findings": [f.to_dict() for f in self.findings],
            "improved": list(self.improved),
        }
