"""Check command: enforce content and structure limits."""

from pathlib import Path
from typing import List, Optional

import typer

from . import app
from ._common import console, exit_with_error, load_project, parse_csv, write_report
from ..exceptions import SlocGuardError
from ..formatters import FORMATS, get_formatter
from ..logging_config import set_console_verbosity
from ..runner import CheckOptions, CheckRunner


@app.command()
def check(
    paths: Optional[List[str]] = typer.Argument(
        None,
        help="Files or directories to check (default: config include_paths, then .)",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    max_lines: Optional[int] = typer.Option(
        None, "--max-lines",
        help="Override content.max_lines",
        min=0,
    ),
    ext: Optional[str] = typer.Option(
        None, "--ext",
        help="Comma-separated extensions to check (e.g. rs,py)",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x",
        help="Extra glob to exclude from scanning (repeatable)",
    ),
    include: Optional[List[str]] = typer.Option(
        None, "--include", "-I",
        help="Scan root; replaces positional paths (repeatable)",
    ),
    warn_threshold: Optional[float] = typer.Option(
        None, "--warn-threshold",
        help="Override content.warn_threshold (0.0-1.0)",
        min=0.0, max=1.0,
    ),
    warn_only: bool = typer.Option(
        False, "--warn-only",
        help="Report failures as warnings and always exit 0",
    ),
    strict: bool = typer.Option(
        False, "--strict",
        help="Treat warnings as failures",
    ),
    baseline: Optional[Path] = typer.Option(
        None, "--baseline", "-b",
        help="Baseline file (default: baseline.path from config, if present)",
        dir_okay=False,
    ),
    diff: Optional[str] = typer.Option(
        None, "--diff",
        help="Only check files changed since REF (or in BASE..TARGET)",
    ),
    output_format: str = typer.Option(
        "text", "--format", "-f",
        help=f"Output format: {', '.join(FORMATS)}",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Write the report to a file instead of stdout",
        dir_okay=False,
    ),
    write_json: Optional[Path] = typer.Option(
        None, "--write-json",
        help="Also write a JSON report to this file",
        dir_okay=False,
    ),
    write_sarif: Optional[Path] = typer.Option(
        None, "--write-sarif",
        help="Also write a SARIF report to this file",
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
    no_extends: bool = typer.Option(
        False, "--no-extends",
        help="Ignore 'extends' in config files",
    ),
    suggest: bool = typer.Option(
        False, "--suggest",
        help="Suggest how to split files over their limit",
    ),
    update_baseline: bool = typer.Option(
        False, "--update-baseline",
        help="Rewrite the baseline with the current violations",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Print nothing on a clean text run",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Enable verbose (DEBUG) logging",
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w",
        help="Parallel workers for line counting",
        min=1, max=64,
    ),
):
    """
    Check files against SLOC limits and directories against structure rules.

    Exit codes: 0 clean, 1 threshold exceeded, 2 configuration or IO error.

    [bold cyan]Examples:[/bold cyan]

      sloc-guard check

      sloc-guard check src --max-lines 400 --ext rs,py

      sloc-guard check --diff origin/main --format sarif -o results.sarif

      sloc-guard check --baseline .sloc-guard-baseline.json --strict
    """
    if verbose or quiet:
        set_console_verbosity(verbose=verbose, quiet=quiet)

    if output_format not in FORMATS:
        console.print(f"[red]Error:[/red] Unknown format '{output_format}' (choose from {', '.join(FORMATS)})")
        raise typer.Exit(2)
    if color not in ("auto", "always", "never"):
        console.print("[red]Error:[/red] --color must be auto, always or never")
        raise typer.Exit(2)

    overrides = {
        "content.max_lines": max_lines,
        "content.extensions": parse_csv(ext),
        "content.warn_threshold": warn_threshold,
        "scanner.gitignore": False if no_gitignore else None,
    }

    project = None
    try:
        project = load_project(config, overrides, exclude, no_cache=no_cache, no_extends=no_extends)
        options = CheckOptions(
            paths=list(paths or []),
            include=list(include or []),
            diff=diff,
            baseline_path=baseline,
            strict=strict,
            warn_only=warn_only,
            use_cache=not no_cache,
            suggest=suggest,
            update_baseline=update_baseline,
            max_workers=workers,
        )
        report = CheckRunner(project, options).run()

        formatter = get_formatter(output_format, color=color, show_suggestions=suggest)
        if output is not None:
            write_report(output, formatter.format(report))
        elif not (quiet and output_format == "text" and report.exit_code == 0):
            formatter.render(report)
        if write_json is not None:
            write_report(write_json, get_formatter("json", show_suggestions=suggest).format(report))
        if write_sarif is not None:
            write_report(write_sarif, get_formatter("sarif").format(report))

        raise typer.Exit(report.exit_code)

    except typer.Exit:
        raise
    except SlocGuardError as e:
        exit_with_error(e, output_format)
    except KeyboardInterrupt:
        console.print("\n[yellow]Check interrupted[/yellow]")
        raise typer.Exit(130)
    finally:
        if project is not None:
            project.close()
