"""Baseline commands: create, update and verify the grandfathered violations."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from . import app
from ._common import console, exit_with_error, load_project
from ..baseline import (
    BaselineUpdateMode,
    build_baseline,
    entry_for,
    load_baseline,
    save_baseline,
    stale_entries,
    update_baseline,
)
from ..exceptions import SlocGuardError
from ..runner import CheckOptions, collect_findings

baseline_app = typer.Typer(
    name="baseline",
    help="Record existing violations so only new ones fail",
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(baseline_app, name="baseline")

_UPDATE_MODES = [m.value for m in BaselineUpdateMode]


def _config_option():
    return typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    )


def _baseline_option():
    return typer.Option(
        None, "--baseline", "-b",
        help="Baseline file (default: baseline.path from config)",
        dir_okay=False,
    )


@baseline_app.command("create")
def create(
    paths: Optional[List[str]] = typer.Argument(None, help="Files or directories to scan"),
    config: Optional[Path] = _config_option(),
    baseline: Optional[Path] = _baseline_option(),
    force: bool = typer.Option(
        False, "--force",
        help="Overwrite an existing baseline",
    ),
):
    """Snapshot every current violation into a new baseline."""
    project = None
    try:
        project = load_project(config)
        target = project.baseline_file(baseline)
        if target.exists() and not force:
            console.print(f"[yellow]{target} already exists; use --force or 'baseline update'[/yellow]")
            raise typer.Exit(1)

        findings = collect_findings(project, CheckOptions(paths=list(paths or [])))
        snapshot = build_baseline(findings)
        save_baseline(snapshot, target)
        console.print(f"[green]Baseline saved to {target} ({len(snapshot)} entries)[/green]")
    except typer.Exit:
        raise
    except SlocGuardError as e:
        exit_with_error(e)
    finally:
        if project is not None:
            project.close()


@baseline_app.command("update")
def update(
    paths: Optional[List[str]] = typer.Argument(None, help="Files or directories to scan"),
    config: Optional[Path] = _config_option(),
    baseline: Optional[Path] = _baseline_option(),
    mode: str = typer.Option(
        "all", "--mode", "-m",
        help=f"What to refresh: {', '.join(_UPDATE_MODES)}",
    ),
):
    """
    Refresh the baseline from the current violations.

    [bold]all[/bold] replaces it; [bold]content[/bold] / [bold]structure[/bold]
    refresh one kind and keep the other; [bold]new[/bold] only adds paths.
    """
    if mode not in _UPDATE_MODES:
        console.print(f"[red]Error:[/red] Unknown mode '{mode}' (choose from {', '.join(_UPDATE_MODES)})")
        raise typer.Exit(2)

    project = None
    try:
        project = load_project(config)
        target = project.baseline_file(baseline)
        existing = load_baseline(target) if target.is_file() else None

        findings = collect_findings(project, CheckOptions(paths=list(paths or [])))
        updated = update_baseline(existing, findings, BaselineUpdateMode(mode))
        save_baseline(updated, target)

        before = len(existing) if existing is not None else 0
        console.print(
            f"[green]Baseline updated ({mode}):[/green] {before} -> {len(updated)} entries in {target}"
        )
    except typer.Exit:
        raise
    except SlocGuardError as e:
        exit_with_error(e)
    finally:
        if project is not None:
            project.close()


@baseline_app.command("verify")
def verify(
    paths: Optional[List[str]] = typer.Argument(None, help="Files or directories to scan"),
    config: Optional[Path] = _config_option(),
    baseline: Optional[Path] = _baseline_option(),
):
    """
    Check that the baseline matches the current violations.

    Exits 1 when entries are stale (no longer violating) or missing
    (violations the baseline does not record).
    """
    project = None
    try:
        project = load_project(config)
        target = project.baseline_file(baseline)
        recorded = load_baseline(target)

        findings = collect_findings(project, CheckOptions(paths=list(paths or [])))
        checked = {f.path for f in findings if f.is_content}
        stale = stale_entries(recorded, findings, checked)
        missing = sorted({f.path for f in findings if entry_for(f) is not None and f.path not in recorded})

        for path in stale:
            console.print(f"[yellow]stale:[/yellow] {escape(path)}")
        for path in missing:
            console.print(f"[red]missing:[/red] {escape(path)}")

        if stale or missing:
            console.print(
                f"Baseline is out of date: {len(stale)} stale, {len(missing)} missing. "
                "Run 'sloc-guard baseline update'."
            )
            raise typer.Exit(1)
        console.print(f"[green]Baseline is up to date[/green] ({len(recorded)} entries)")
    except typer.Exit:
        raise
    except SlocGuardError as e:
        exit_with_error(e)
    finally:
        if project is not None:
            project.close()
