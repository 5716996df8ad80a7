"""Explain command: show which rule decides a path's limits."""

import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from . import app
from ._common import console, exit_with_error, load_project
from ..exceptions import SlocGuardError
from ..matching import normalize_path
from ..rules import (
    ContentExplanation,
    MatchedDefault,
    MatchedExcluded,
    MatchedOverride,
    MatchedRule,
    StructureExplanation,
)

_STATUS_STYLE = {"matched": "green", "superseded": "yellow", "no_match": "dim"}


def _describe_match(matched: object) -> str:
    if isinstance(matched, MatchedExcluded):
        return f"excluded by {matched.pattern}"
    if isinstance(matched, MatchedOverride):
        return f"override #{matched.index} ({matched.path}): {matched.reason}"
    if isinstance(matched, MatchedRule):
        text = f"rule #{matched.index} ({matched.pattern})"
        return f"{text}: {matched.reason}" if matched.reason else text
    if isinstance(matched, MatchedDefault):
        return "global defaults"
    return str(matched)


def _relative(path: Path, root: Path) -> str:
    resolved = path.resolve()
    try:
        rel = resolved.relative_to(root)
    except ValueError:
        rel = Path(os.path.relpath(resolved, root))
    return normalize_path(rel.as_posix()) or "."


def _show_content(explanation: ContentExplanation) -> None:
    console.print(f"[bold]{escape(explanation.path)}[/bold] (content)")
    if explanation.language:
        console.print(f"  language: {explanation.language}")
    console.print(f"  decided by: {escape(_describe_match(explanation.matched_rule))}")
    if explanation.excluded:
        return
    limits = explanation.limits
    warn = f"{limits.warn_at} lines" if limits.warn_at is not None else f"{limits.warn_threshold:.0%}"
    console.print(
        f"  max_lines: {limits.max_lines}, warn at: {warn}, "
        f"skip_comments: {limits.skip_comments}, skip_blank: {limits.skip_blank}"
    )

    table = Table(title="Rule chain")
    table.add_column("Source")
    table.add_column("Pattern")
    table.add_column("Status")
    table.add_column("max_lines", justify="right")
    table.add_column("Reason", style="dim")
    for c in explanation.rule_chain:
        style = _STATUS_STYLE.get(c.status, "")
        table.add_row(
            c.source,
            escape(c.pattern or "*"),
            f"[{style}]{c.status}[/{style}]",
            "-" if c.max_lines is None else str(c.max_lines),
            c.reason or "",
        )
    console.print(table)


def _show_structure(explanation: StructureExplanation) -> None:
    console.print(f"[bold]{escape(explanation.path)}[/bold] (structure)")
    console.print(f"  decided by: {escape(_describe_match(explanation.matched_rule))}")
    limits = explanation.limits

    def fmt(value: Optional[int]) -> str:
        if value is None:
            return "unset"
        return "unlimited" if value < 0 else str(value)

    console.print(
        f"  max_files: {fmt(limits.max_files)}, max_dirs: {fmt(limits.max_dirs)}, "
        f"max_depth: {fmt(limits.max_depth)}"
    )

    table = Table(title="Rule chain")
    table.add_column("Source")
    table.add_column("Scope")
    table.add_column("Status")
    table.add_column("files", justify="right")
    table.add_column("dirs", justify="right")
    table.add_column("depth", justify="right")
    for c in explanation.rule_chain:
        style = _STATUS_STYLE.get(c.status, "")
        table.add_row(
            c.source,
            escape(c.pattern or "*"),
            f"[{style}]{c.status}[/{style}]",
            fmt(c.max_files) if c.max_files is not None else "-",
            fmt(c.max_dirs) if c.max_dirs is not None else "-",
            fmt(c.max_depth) if c.max_depth is not None else "-",
        )
    console.print(table)


def _to_json(explanation) -> dict:
    data = asdict(explanation)
    data["matched_rule"] = _describe_match(explanation.matched_rule)
    return data


@app.command()
def explain(
    path: Path = typer.Argument(
        ...,
        help="File (content rules) or directory (structure rules) to explain",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    output_format: str = typer.Option(
        "text", "--format", "-f",
        help="Output format: text or json",
    ),
):
    """
    Show which override or rule decides the limits for PATH.

    Every candidate is listed as matched, superseded or no_match.
    """
    project = None
    try:
        project = load_project(config, no_cache=True)
        rel = _relative(path, project.root)

        if path.is_dir():
            explanation = project.checker.explain(rel)
            show = _show_structure
        else:
            explanation = project.resolver.explain(rel)
            language = project.language_for(rel)
            explanation.language = language.name if language else None
            show = _show_content

        if output_format == "json":
            typer.echo(json.dumps(_to_json(explanation), indent=2, default=str))
        else:
            show(explanation)

    except typer.Exit:
        raise
    except SlocGuardError as e:
        exit_with_error(e, output_format)
    finally:
        if project is not None:
            project.close()
