"""Minimal .gitignore semantics for the git-aware scanner.

Supported: comments, blank lines, negation (``!pat``), directory-only
patterns (``pat/``), anchoring (leading or inner ``/``), ``**``, escaped
leading ``#``/``!`` and escaped trailing spaces. Nested ``.gitignore``
files are loaded as the walk enters their directory; rules from deeper
files come later, so they win under last-match-wins.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from ..exceptions import InvalidPatternError
from ..logging_config import get_logger
from ..matching import Glob

logger = get_logger(__name__)

GITIGNORE = ".gitignore"


@dataclass(frozen=True)
class GitIgnoreRule:
    """A single .gitignore rule."""

    pattern: str
    negation: bool
    directory_only: bool
    anchored: bool  # Matched against the path relative to source_dir, not the name
    source_dir: Path
    glob: Glob

    def matches(self, path: Path, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        try:
            rel = path.relative_to(self.source_dir)
        except ValueError:
            return False
        target = rel.as_posix() if self.anchored else path.name
        return self.glob.matches(target)


def _strip_trailing_spaces(line: str) -> str:
    stripped = line.rstrip(" ")
    if stripped.endswith("\\") and len(stripped) < len(line):
        # "foo\ " keeps one escaped space
        return stripped[:-1] + " "
    return stripped


def parse_gitignore_lines(lines: Sequence[str], source_dir: Path) -> List[GitIgnoreRule]:
    rules = []
    for raw in lines:
        line = _strip_trailing_spaces(raw.rstrip("\n\r"))
        if not line or line.startswith("#"):
            continue

        negation = line.startswith("!")
        if negation:
            line = line[1:]
        elif line.startswith(("\\#", "\\!")):
            line = line[1:]

        directory_only = line.endswith("/")
        if directory_only:
            line = line.rstrip("/")

        anchored = "/" in line
        line = line.lstrip("/")
        if not line:
            continue

        try:
            glob = Glob(line, literal_separator=True)
        except InvalidPatternError as e:
            logger.debug(f"Skipping unparseable .gitignore pattern {raw!r} in {source_dir}: {e}")
            continue

        rules.append(
            GitIgnoreRule(
                pattern=line,
                negation=negation,
                directory_only=directory_only,
                anchored=anchored,
                source_dir=source_dir,
                glob=glob,
            )
        )
    return rules


def parse_gitignore_file(gitignore_path: Path, source_dir: Path) -> List[GitIgnoreRule]:
    """Parse a .gitignore file; a missing or unreadable file yields no rules."""
    try:
        with open(gitignore_path, "r", encoding="utf-8", errors="replace") as f:
            return parse_gitignore_lines(f.readlines(), source_dir)
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(f"Cannot read {gitignore_path}: {e}")
        return []


def initial_rules(project_root: Path, scan_root: Path) -> List[GitIgnoreRule]:
    """Rules in force when a walk starts at ``scan_root``.

    ``.git/info/exclude`` plus the .gitignore files of every directory from
    the project root down to, but not including, ``scan_root``; the walk
    itself loads ``scan_root``'s own file.
    """
    rules = parse_gitignore_file(project_root / ".git" / "info" / "exclude", project_root)
    try:
        rel = scan_root.relative_to(project_root)
    except ValueError:
        return rules
    current = project_root
    for part in rel.parts:
        rules = rules_for_dir(current, rules)
        current = current / part
    return rules


def rules_for_dir(directory: Path, inherited: List[GitIgnoreRule]) -> List[GitIgnoreRule]:
    """Inherited rules extended with the directory's own .gitignore, if any."""
    if not os.path.isfile(directory / GITIGNORE):
        return inherited
    return inherited + parse_gitignore_file(directory / GITIGNORE, directory)


def is_ignored(path: Path, is_dir: bool, rules: Sequence[GitIgnoreRule]) -> bool:
    """Last matching rule wins; a matching negation un-ignores."""
    ignored = False
    for rule in rules:
        if rule.matches(path, is_dir):
            ignored = not rule.negation
    return ignored
