"""Standalone HTML report."""

from html import escape
from typing import List

from ..models import CheckReport, Finding
from .base import BaseFormatter

_STYLE = """
body { font-family: -apple-system, Segoe UI, sans-serif; margin: 2rem; color: #222; }
table { border-collapse: collapse; width: 100%; }
th, td { border-bottom: 1px solid #ddd; padding: 0.4rem 0.6rem; text-align: left; }
th { background: #f4f4f4; }
.fail { color: #b00020; font-weight: bold; }
.warn { color: #a36b00; }
.ok { color: #2e7d32; }
.grandfathered { color: #00838f; }
.summary span { margin-right: 1.5rem; }
"""


def _status_class(finding: Finding) -> str:
    if finding.is_grandfathered:
        return "grandfathered"
    return finding.severity.value


def _row(finding: Finding) -> str:
    cls = _status_class(finding)
    cells = [
        f'<td class="{cls}">{escape(cls)}</td>',
        f"<td><code>{escape(finding.path)}</code></td>",
        f"<td>{escape(finding.kind)}</td>",
        f"<td>{finding.actual}</td>",
        f"<td>{finding.limit}</td>",
        f"<td>{escape(finding.detail or '')}</td>",
        f"<td>{escape(finding.reason or '')}</td>",
    ]
    return "<tr>" + "".join(cells) + "</tr>"


class HtmlFormatter(BaseFormatter):
    def format(self, report: CheckReport) -> str:
        summary = report.summary
        parts: List[str] = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8">',
            "<title>sloc-guard report</title>",
            f"<style>{_STYLE}</style>",
            "</head>",
            "<body>",
            "<h1>sloc-guard report</h1>",
            '<p class="summary">'
            f"<span>Files: {summary.total_files}</span>"
            f'<span class="ok">Passed: {summary.passed}</span>'
            f'<span class="warn">Warnings: {summary.warnings}</span>'
            f'<span class="fail">Failed: {summary.failed}</span>'
            f'<span class="grandfathered">Grandfathered: {summary.grandfathered}</span>'
            "</p>",
        ]
        for notice in report.notices:
            parts.append(f"<p><em>{escape(notice)}</em></p>")

        violations = report.violations
        if violations:
            parts.append("<table>")
            parts.append(
                "<thead><tr><th>Status</th><th>Path</th><th>Check</th><th>Actual</th>"
                "<th>Limit</th><th>Detail</th><th>Reason</th></tr></thead>"
            )
            parts.append("<tbody>")
            parts.extend(_row(f) for f in violations)
            parts.append("</tbody></table>")
        else:
            parts.append("<p>No violations.</p>")

        if self.show_suggestions:
            for finding in violations:
                if finding.suggestions:
                    parts.append(f"<h3>Split suggestions for <code>{escape(finding.path)}</code></h3><ul>")
                    parts.extend(f"<li>{escape(s)}</li>" for s in finding.suggestions)
                    parts.append("</ul>")

        if report.improved:
            parts.append("<h2>Improved</h2><ul>")
            parts.extend(f"<li><code>{escape(p)}</code></li>" for p in report.improved)
            parts.append("</ul>")

        parts.extend(["</body>", "</html>"])
        return "\n".join(parts) + "\n"
