"""Rich terminal formatter for sloc-guard."""

import io
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import Category, CheckReport, Finding, Severity
from .base import BaseFormatter

_KIND_LABELS = {
    "content": "lines",
    "files": "files",
    "dirs": "subdirs",
    "depth": "depth",
    "disallowed_file": "not allowed",
    "disallowed_dir": "dir not allowed",
    "denied_file": "denied",
    "denied_dir": "denied dir",
    "naming": "naming",
    "missing_sibling": "missing sibling",
}


def _status_label(finding: Finding) -> str:
    if finding.category is Category.GRANDFATHERED and finding.severity is not Severity.FAIL:
        return "[cyan]grandfathered[/cyan]"
    if finding.severity is Severity.FAIL:
        if finding.category is Category.WORSENED:
            return "[red bold]worsened[/red bold]"
        return "[red]fail[/red]"
    if finding.severity is Severity.WARN:
        return "[yellow]warn[/yellow]"
    return "[green]ok[/green]"


def _usage(finding: Finding) -> str:
    if finding.kind in ("content", "files", "dirs", "depth"):
        return f"{finding.actual}/{finding.limit}"
    return escape(finding.detail or "")


def make_console(color: str = "auto", file=None) -> Console:
    if color == "always":
        return Console(file=file, force_terminal=True)
    if color == "never":
        return Console(file=file, no_color=True, highlight=False)
    return Console(file=file)


class TextFormatter(BaseFormatter):
    """Table of violations followed by a summary line."""

    def render(self, report: CheckReport) -> None:
        self._print(make_console(self.color), report)

    def format(self, report: CheckReport) -> str:
        buffer = io.StringIO()
        console = make_console("never" if self.color == "auto" else self.color, file=buffer)
        console.width = 120
        self._print(console, report)
        return buffer.getvalue().rstrip("\n")

    def _print(self, console: Console, report: CheckReport) -> None:
        for notice in report.notices:
            console.print(f"[yellow]Notice:[/yellow] {escape(notice)}")

        shown: List[Finding] = report.violations
        if shown:
            table = Table(title="Size violations", show_lines=False)
            table.add_column("Status")
            table.add_column("Path", style="bold")
            table.add_column("Check")
            table.add_column("Actual/Limit", justify="right")
            table.add_column("Reason", style="dim")
            for finding in shown:
                table.add_row(
                    _status_label(finding),
                    escape(finding.path),
                    _KIND_LABELS.get(finding.kind, finding.kind),
                    _usage(finding),
                    escape(finding.reason or ""),
                )
            console.print(table)

            for finding in shown:
                if self.show_suggestions and finding.suggestions:
                    console.print(f"[bold]Split suggestions for {escape(finding.path)}:[/bold]")
                    for suggestion in finding.suggestions:
                        console.print(f"  - {escape(suggestion)}")

        if report.improved:
            console.print(
                f"[green]Improved:[/green] {len(report.improved)} baseline entries no longer violate: "
                + escape(", ".join(report.improved))
            )

        summary = report.summary
        parts = [
            f"{summary.total_files} files checked",
            f"[green]{summary.passed} passed[/green]",
            f"[yellow]{summary.warnings} warnings[/yellow]",
            f"[red]{summary.failed} failed[/red]",
        ]
        if summary.grandfathered:
            parts.append(f"[cyan]{summary.grandfathered} grandfathered[/cyan]")
        if report.errors:
            parts.append(f"{report.errors} errors")
        console.print(", ".join(parts))
        if report.baseline_updated:
            console.print("[dim]Baseline updated[/dim]")
