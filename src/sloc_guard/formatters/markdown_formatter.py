"""Markdown formatter, suitable for PR comments and job summaries."""

from typing import List

from ..models import CheckReport, Finding, Severity
from .base import BaseFormatter

_ICONS = {Severity.FAIL: "❌", Severity.WARN: "⚠️", Severity.OK: "✅"}


def _row(finding: Finding) -> str:
    status = finding.category.value if finding.category.value != "new" else finding.severity.value
    detail = finding.detail or ""
    reason = finding.reason or ""
    return (
        f"| {_ICONS[finding.severity]} {status} | `{finding.path}` | {finding.kind} "
        f"| {finding.actual} | {finding.limit} | {detail} | {reason} |"
    )


class MarkdownFormatter(BaseFormatter):
    def format(self, report: CheckReport) -> str:
        summary = report.summary
        lines: List[str] = ["## sloc-guard", ""]
        lines.append(
            f"**{summary.total_files}** files checked: {summary.passed} passed, "
            f"{summary.warnings} warnings, {summary.failed} failed, "
            f"{summary.grandfathered} grandfathered"
        )
        lines.append("")

        for notice in report.notices:
            lines.append(f"> {notice}")
        if report.notices:
            lines.append("")

        violations = report.violations
        if violations:
            lines.append("| Status | Path | Check | Actual | Limit | Detail | Reason |")
            lines.append("|--------|------|-------|--------|-------|--------|--------|")
            lines.extend(_row(f) for f in violations)
            lines.append("")
        else:
            lines.append("No violations.")
            lines.append("")

        if self.show_suggestions:
            for finding in violations:
                if not finding.suggestions:
                    continue
                lines.append(f"<details><summary>Split suggestions for <code>{finding.path}</code></summary>")
                lines.append("")
                lines.extend(f"- {s}" for s in finding.suggestions)
                lines.append("")
                lines.append("</details>")
                lines.append("")

        if report.improved:
            lines.append("### Improved")
            lines.append("")
            lines.extend(f"- `{path}`" for path in report.improved)
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"
