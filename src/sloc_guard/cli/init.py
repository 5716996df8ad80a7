"""Init command: write a starter configuration."""

from pathlib import Path
from typing import Optional

import typer

from . import app
from ._common import console, err_console, exit_with_error, write_report
from ..config import CONFIG_FILENAME, available_presets, find_project_root
from ..detect import detect_projects, render_detected_config
from ..exceptions import SlocGuardError

STARTER_CONFIG = """\
version = "2"
{extends}
[scanner]
gitignore = true
exclude = [".git/**"]

[content]
extensions = ["rs", "go", "py", "js", "ts", "c", "cpp"]
max_lines = 500
warn_threshold = 0.9
skip_comments = true
skip_blank = true

# [[content.rules]]
# pattern = "**/tests/**"
# max_lines = 800
# reason = "Test files carry fixtures"

[structure]
# max_files = 30
# max_dirs = 10
# max_depth = 8
deny_files = ["*.bak", "*.tmp", ".DS_Store"]

[baseline]
path = ".sloc-guard-baseline.json"
ratchet = "warn"
"""


def render_starter(preset: Optional[str] = None) -> str:
    extends = f'extends = "{preset}"\n' if preset else ""
    return STARTER_CONFIG.format(extends=extends)


@app.command()
def init(
    preset: Optional[str] = typer.Option(
        None, "--preset", "-p",
        help=f"Extend a built-in preset: {', '.join(available_presets())}",
    ),
    detect: bool = typer.Option(
        False, "--detect",
        help="Choose extensions, limits, excludes and preset from project marker files",
    ),
    force: bool = typer.Option(
        False, "--force",
        help="Overwrite an existing config file",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help=f"Where to write the config (default: ./{CONFIG_FILENAME} at the project root)",
        dir_okay=False,
    ),
):
    """Write a starter .sloc-guard.toml."""
    if preset is not None and preset not in available_presets():
        console.print(
            f"[red]Error:[/red] Unknown preset '{preset}' (choose from {', '.join(available_presets())})"
        )
        raise typer.Exit(2)

    target = output or find_project_root() / CONFIG_FILENAME
    if target.exists() and not force:
        console.print(f"[yellow]{target} already exists; use --force to overwrite[/yellow]")
        raise typer.Exit(1)

    if detect:
        try:
            detection = detect_projects(target.parent)
        except OSError as e:
            console.print(f"[red]Error:[/red] Cannot inspect {target.parent}: {e}")
            raise typer.Exit(2)
        err_console.print(f"Detected: {detection.describe()}")
        for sub in detection.subprojects:
            err_console.print(f"  - {sub.path}: {sub.project_type.display_name}")
        text = render_detected_config(detection, preset)
    else:
        text = render_starter(preset)

    try:
        write_report(target, text.rstrip("\n"))
    except SlocGuardError as e:
        exit_with_error(e)
    console.print(f"[green]Wrote {target}[/green]")
