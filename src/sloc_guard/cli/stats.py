"""Stats command: line totals, breakdown and trend."""

from pathlib import Path
from typing import List, Optional

import typer

from . import app
from ._common import console, exit_with_error, load_project, parse_csv, write_report
from ..exceptions import SlocGuardError
from ..formatters import get_stats_formatter
from ..runner import collect_stats


@app.command()
def stats(
    paths: Optional[List[str]] = typer.Argument(
        None,
        help="Files or directories to count",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    ext: Optional[str] = typer.Option(
        None, "--ext",
        help="Comma-separated extensions to count",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x",
        help="Extra glob to exclude from scanning (repeatable)",
    ),
    include: Optional[List[str]] = typer.Option(
        None, "--include", "-I",
        help="Scan root; replaces positional paths (repeatable)",
    ),
    output_format: str = typer.Option(
        "text", "--format", "-f",
        help="Output format: text, json, markdown",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Write the report to a file instead of stdout",
        dir_okay=False,
    ),
    color: str = typer.Option(
        "auto", "--color",
        help="Colored output: auto, always, never",
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache",
        help="Do not read or write the line-count cache",
    ),
    no_gitignore: bool = typer.Option(
        False, "--no-gitignore",
        help="Do not honor .gitignore files",
    ),
    no_history: bool = typer.Option(
        False, "--no-history",
        help="Do not record this run in the trend history",
    ),
):
    """Show code, comment and blank line totals with a trend since the last run."""
    try:
        formatter = get_stats_formatter(output_format, color=color)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    overrides = {
        "content.extensions": parse_csv(ext),
        "scanner.gitignore": False if no_gitignore else None,
    }

    project = None
    try:
        project = load_project(config, overrides, exclude, no_cache=no_cache)
        report = collect_stats(
            project,
            paths=list(paths or []),
            include=list(include or []),
            record_history=not no_history,
        )
        if output is not None:
            write_report(output, formatter.format(report))
        else:
            formatter.render(report)

    except typer.Exit:
        raise
    except SlocGuardError as e:
        exit_with_error(e, output_format)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stats interrupted[/yellow]")
        raise typer.Exit(130)
    finally:
        if project is not None:
            project.close()
