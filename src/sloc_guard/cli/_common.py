"""Shared CLI helpers."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ..config import Config, find_project_root, load_config, validate_config
from ..exceptions import FileAccessError, SlocGuardError, render_error
from ..logging_config import get_logger
from ..runner import Project

console = Console()
err_console = Console(stderr=True)

logger = get_logger(__name__)


def exit_with_error(err: SlocGuardError, output_format: str = "text") -> None:
    """Print the structured error record on stderr and exit with code 2."""
    record = render_error(err)
    logger.debug(f"Aborting: {err.error_type}: {err}")
    if output_format == "json":
        err_console.print_json(json.dumps(record))
    else:
        err_console.print(f"[red]Error ({record['error_type']}):[/red] {escape(record['message'])}")
        if record["detail"]:
            err_console.print(f"  detail: {record['detail']}", markup=False)
        if record["suggestion"]:
            err_console.print(f"  hint: {record['suggestion']}", markup=False)
    raise typer.Exit(2)


def parse_csv(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def resolve_config(
    config: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    extra_exclude: Optional[List[str]] = None,
    no_extends: bool = False,
) -> Config:
    """Load the effective config and apply CLI flags on top."""
    loaded = load_config(config_file=config, no_extends=no_extends, overrides=overrides)
    if extra_exclude:
        scanner = replace(loaded.scanner, exclude=[*loaded.scanner.exclude, *extra_exclude])
        loaded = replace(loaded, scanner=scanner)
        validate_config(loaded)
    return loaded


def load_project(
    config: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    extra_exclude: Optional[List[str]] = None,
    no_cache: bool = False,
    no_extends: bool = False,
) -> Project:
    settings = resolve_config(config, overrides, extra_exclude, no_extends)
    return Project(settings, find_project_root(), use_cache=not no_cache)


def write_report(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        raise FileAccessError(str(path), e.strerror or str(e))
    logger.info(f"Wrote report to {path}")
