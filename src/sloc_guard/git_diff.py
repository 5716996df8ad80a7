"""Changed-file discovery for ``check --diff``.

Accepts ``<ref>`` (working tree against a ref, untracked files included)
or ``<base>..<target>`` (two commits). Paths come back relative to the
project root, in normalized form.
"""

import subprocess
from pathlib import Path
from typing import List, Set

from .exceptions import GitError
from .logging_config import get_logger
from .matching import normalize_path

logger = get_logger(__name__)

GIT_TIMEOUT = 30


def _git(repo_path: Path, *args: str) -> str:
    cmd = ["git", "-C", str(repo_path), *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=GIT_TIMEOUT)
    except FileNotFoundError:
        raise GitError("git executable not found")
    except subprocess.TimeoutExpired:
        raise GitError(f"'git {' '.join(args)}' timed out after {GIT_TIMEOUT}s")
    if result.returncode != 0:
        stderr = result.stderr.strip().splitlines()
        raise GitError(stderr[-1] if stderr else f"'git {' '.join(args)}' failed (rc={result.returncode})")
    return result.stdout


def repo_toplevel(path: Path) -> Path:
    """Root of the repository containing ``path``. Raises GitError outside a repo."""
    return Path(_git(path, "rev-parse", "--show-toplevel").strip()).resolve()


def parse_diff_spec(spec: str) -> List[str]:
    """Split ``base..target`` into git diff arguments; ``ref`` stays a single ref."""
    spec = spec.strip()
    if not spec:
        raise GitError("empty diff reference")
    if "..." in spec:
        raise GitError(f"unsupported range '{spec}', use <base>..<target>")
    if ".." in spec:
        base, target = spec.split("..", 1)
        return [base or "HEAD", target or "HEAD"]
    return [spec]


def _verify_ref(repo: Path, ref: str) -> None:
    try:
        _git(repo, "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
    except GitError:
        raise GitError(f"cannot resolve reference '{ref}'")


def changed_files(project_root: Path, spec: str) -> Set[str]:
    """Files changed according to ``spec``, relative to ``project_root``."""
    project_root = Path(project_root).resolve()
    refs = parse_diff_spec(spec)
    repo = repo_toplevel(project_root)
    for ref in refs:
        _verify_ref(repo, ref)

    names = _git(repo, "diff", "--name-only", *refs).splitlines()
    if len(refs) == 1:
        names += _git(repo, "ls-files", "--others", "--exclude-standard").splitlines()

    changed: Set[str] = set()
    for name in names:
        if not name.strip():
            continue
        absolute = repo / name
        try:
            changed.add(normalize_path(absolute.relative_to(project_root).as_posix()))
        except ValueError:
            continue  # outside the project root
    logger.info(f"Diff {spec}: {len(changed)} changed files")
    return changed
