"""Config commands: validate and show the effective configuration."""

import json
from pathlib import Path
from typing import Any, List, Optional

import typer

from . import app
from ._common import console, exit_with_error, resolve_config
from ..config import collect_expired_rules
from ..exceptions import SlocGuardError

config_app = typer.Typer(
    name="config",
    help="Validate or display the effective configuration",
    add_completion=False,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{ " + ", ".join(f"{k} = {_toml_value(v)}" for k, v in value.items() if v is not None) + " }"
    return json.dumps(str(value))


def _is_table_array(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def render_toml(data: dict, prefix: str = "") -> List[str]:
    """Render a config table as TOML-like text (``None`` values omitted)."""
    lines: List[str] = []
    tables = []
    arrays = []
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            tables.append((key, value))
        elif _is_table_array(value):
            arrays.append((key, value))
        else:
            lines.append(f"{key} = {_toml_value(value)}")

    for key, value in tables:
        name = f"{prefix}{key}"
        body = render_toml(value, f"{name}.")
        if lines or body:
            lines.append("")
        lines.append(f"[{name}]")
        lines.extend(body)

    for key, items in arrays:
        name = f"{prefix}{key}"
        for item in items:
            lines.append("")
            lines.append(f"[[{name}]]")
            lines.extend(render_toml(item, f"{name}."))
    return lines


@config_app.command("validate")
def validate(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    no_extends: bool = typer.Option(
        False, "--no-extends",
        help="Ignore 'extends' in config files",
    ),
):
    """Check a configuration for syntax and semantic errors."""
    try:
        settings = resolve_config(config, no_extends=no_extends)
    except SlocGuardError as e:
        exit_with_error(e)

    source = settings.source or "built-in defaults"
    console.print(f"[green]Configuration is valid[/green] ({source})")
    for expired in collect_expired_rules(settings):
        console.print(
            f"[yellow]Expired:[/yellow] {expired.key} ({expired.pattern}) on {expired.expires.isoformat()}"
        )


@config_app.command("show")
def show(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    output_format: str = typer.Option(
        "text", "--format", "-f",
        help="Output format: text or json",
    ),
    no_extends: bool = typer.Option(
        False, "--no-extends",
        help="Ignore 'extends' in config files",
    ),
):
    """Print the effective configuration after extends, environment and defaults."""
    if output_format not in ("text", "json"):
        console.print(f"[red]Error:[/red] Unknown format '{output_format}' (choose from text, json)")
        raise typer.Exit(2)
    try:
        settings = resolve_config(config, no_extends=no_extends)
    except SlocGuardError as e:
        exit_with_error(e, output_format)

    data = settings.to_dict()
    if output_format == "json":
        typer.echo(json.dumps(data, indent=2, default=str))
        return
    if settings.source:
        typer.echo(f"# source: {settings.source}")
    typer.echo("\n".join(render_toml(data)))
