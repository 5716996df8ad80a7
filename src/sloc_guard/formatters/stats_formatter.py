"""Formatters for the ``stats`` command."""

import io
import json
from datetime import datetime
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..stats import StatsReport
from .text_formatter import make_console


def _signed(value: int) -> str:
    return f"{value:+d}"


class StatsTextFormatter:
    def __init__(self, color: str = "auto"):
        self.color = color

    def render(self, report: StatsReport) -> None:
        self._print(make_console(self.color), report)

    def format(self, report: StatsReport) -> str:
        buffer = io.StringIO()
        console = make_console("never" if self.color == "auto" else self.color, file=buffer)
        console.width = 120
        self._print(console, report)
        return buffer.getvalue().rstrip("\n")

    def _print(self, console: Console, report: StatsReport) -> None:
        totals = report.totals
        if report.shows("summary"):
            console.print(
                f"[bold]{len(report.files)}[/bold] files: "
                f"{totals.code} code, {totals.comment} comment, {totals.blank} blank, "
                f"{totals.ignored} ignored ({totals.total} total)"
            )

        if report.shows("breakdown"):
            label = "Directory" if report.by_directory else "Language"
            table = Table(title=f"By {label.lower()}")
            table.add_column(label)
            for name in ("Files", "Code", "Comment", "Blank"):
                table.add_column(name, justify="right")
            for row in report.breakdown():
                table.add_row(
                    escape(row.key), str(row.files), str(row.stats.code), str(row.stats.comment), str(row.stats.blank)
                )
            console.print(table)

        if report.shows("files"):
            table = Table(title=f"Top {report.top_count} files")
            table.add_column("Path")
            table.add_column("Language")
            table.add_column("Code", justify="right")
            for f in report.top_files():
                table.add_row(escape(f.path), f.language, str(f.stats.code))
            console.print(table)

        if report.shows("trend") and report.trend is not None:
            trend = report.trend
            since = datetime.fromtimestamp(trend.previous_timestamp).strftime("%Y-%m-%d %H:%M")
            if trend.has_changes:
                console.print(
                    f"Since {since}: files {_signed(trend.files)}, code {_signed(trend.code)}, "
                    f"comment {_signed(trend.comment)}, blank {_signed(trend.blank)}"
                )
            else:
                console.print(f"No change since {since}")


class StatsJsonFormatter:
    def __init__(self, color: str = "auto"):
        self.color = color

    def render(self, report: StatsReport) -> None:
        print(self.format(report))

    def format(self, report: StatsReport) -> str:
        return json.dumps(report.to_dict(), indent=2)


class StatsMarkdownFormatter(StatsJsonFormatter):
    def format(self, report: StatsReport) -> str:
        totals = report.totals
        lines: List[str] = ["## sloc-guard stats", ""]
        if report.shows("summary"):
            lines.append(
                f"**{len(report.files)}** files, **{totals.code}** code lines, "
                f"{totals.comment} comment, {totals.blank} blank"
            )
            lines.append("")
        if report.shows("breakdown"):
            label = "Directory" if report.by_directory else "Language"
            lines.append(f"| {label} | Files | Code | Comment | Blank |")
            lines.append("|---|---|---|---|---|")
            for row in report.breakdown():
                lines.append(
                    f"| {row.key} | {row.files} | {row.stats.code} | {row.stats.comment} | {row.stats.blank} |"
                )
            lines.append("")
        if report.shows("files"):
            lines.append("| File | Language | Code |")
            lines.append("|---|---|---|")
            for f in report.top_files():
                lines.append(f"| `{f.path}` | {f.language} | {f.stats.code} |")
            lines.append("")
        if report.shows("trend") and report.trend is not None:
            t = report.trend
            lines.append(
                f"Trend: files {_signed(t.files)}, code {_signed(t.code)}, "
                f"comment {_signed(t.comment)}, blank {_signed(t.blank)}"
            )
        return "\n".join(lines).rstrip() + "\n"


def get_stats_formatter(name: str, color: str = "auto"):
    formatters = {
        "text": StatsTextFormatter,
        "json": StatsJsonFormatter,
        "markdown": StatsMarkdownFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown stats format: {name!r}. Choose from: {', '.join(sorted(formatters))}")
    return cls(color=color)
