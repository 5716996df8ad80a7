"""Location of per-project state (stats cache, trend history).

Inside a git checkout state lives under ``.git/sloc-guard/`` so it never
shows up as untracked; otherwise under ``.sloc-guard/``. Only the project
root is consulted, never its ancestors.
"""

from pathlib import Path

STATE_DIRNAME = "sloc-guard"
FALLBACK_STATE_DIRNAME = ".sloc-guard"
CACHE_DIRNAME = "cache"
HISTORY_FILENAME = "history.json"


def state_dir(project_root: Path) -> Path:
    git_dir = Path(project_root) / ".git"
    if git_dir.is_dir():
        return git_dir / STATE_DIRNAME
    return Path(project_root) / FALLBACK_STATE_DIRNAME


def cache_dir(project_root: Path) -> Path:
    return state_dir(project_root) / CACHE_DIRNAME


def history_path(project_root: Path) -> Path:
    return state_dir(project_root) / HISTORY_FILENAME
