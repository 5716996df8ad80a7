"""Directory walker producing content candidates and per-directory tallies."""

import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..logging_config import get_logger
from ..matching import GlobSet, normalize_path
from ..state import FALLBACK_STATE_DIRNAME
from .gitignore import GitIgnoreRule, initial_rules, is_ignored, rules_for_dir
from .models import ROOT_DIR, DirStats, ScannedFile, ScanResult

logger = get_logger(__name__)

# Never traversed, whatever the configured exclude list says.
ALWAYS_PRUNED_DIRS = frozenset({".git"})
# Project-root paths never traversed: the state directory of a checkout without .git.
ALWAYS_PRUNED_PATHS = frozenset({FALLBACK_STATE_DIRNAME})


def join_rel(parent: str, name: str) -> str:
    return name if parent in ("", ROOT_DIR) else f"{parent}/{name}"


class Scanner:
    """Walk scan roots honoring excludes, optional gitignore and deny rules.

    ``file_filter`` decides which files become content-check candidates;
    every file that survives exclusion is still tallied in its directory.
    ``child_policy`` (the structure checker) may deny children, which
    prunes them from both outputs and records them for reporting, and may
    exclude paths from counts only.
    """

    def __init__(
        self,
        project_root: Path,
        exclude: Sequence[str] = (),
        use_gitignore: bool = True,
        file_filter: Optional[Callable[[str], bool]] = None,
        child_policy=None,
    ):
        self.project_root = Path(project_root).resolve()
        self.exclude = GlobSet(exclude)
        self.use_gitignore = use_gitignore
        self.file_filter = file_filter
        self.child_policy = child_policy

    def rel_path(self, path: Path) -> str:
        resolved = Path(path).resolve()
        if resolved == self.project_root:
            return ROOT_DIR
        try:
            return normalize_path(resolved.relative_to(self.project_root).as_posix())
        except ValueError:
            return normalize_path(resolved.as_posix())

    def scan(self, roots: Sequence[Path]) -> ScanResult:
        result = ScanResult()
        for root in roots:
            result.merge(self.scan_root(Path(root)))
        logger.info(
            f"Scan complete: {len(result.files)} files, {len(result.dirs)} directories, "
            f"{result.skipped} skipped, {result.errors} errors"
        )
        return result

    def scan_root(self, root: Path) -> ScanResult:
        result = ScanResult()
        root = root.resolve()
        rel = self.rel_path(root)

        if root.is_file():
            if self._excluded(rel, is_dir=False):
                result.skipped += 1
            elif self.file_filter is None or self.file_filter(rel):
                result.files.append(ScannedFile(root, rel))
            return result

        if not root.is_dir():
            logger.warning(f"Scan path does not exist: {root}")
            result.errors += 1
            return result

        rules: List[GitIgnoreRule] = []
        if self.use_gitignore:
            rules = initial_rules(self.project_root, root)
        self._walk(root, rel, rules, result)
        return result

    def _excluded(self, rel: str, is_dir: bool) -> bool:
        if not self.exclude:
            return False
        if is_dir:
            return self.exclude.is_dir_match(rel)
        return self.exclude.is_match(rel)

    def _walk(self, root: Path, root_rel: str, rules: List[GitIgnoreRule], result: ScanResult) -> None:
        policy = self.child_policy
        stack = [(root, root_rel, 0, rules)]

        while stack:
            directory, rel, depth, inherited = stack.pop()
            if self.use_gitignore:
                inherited = rules_for_dir(directory, inherited)
            stats = DirStats(path=rel, depth=depth)

            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning(f"Cannot read directory {directory}: {e.strerror or e}")
                result.errors += 1
                continue

            subdirs = []
            for entry in entries:
                name = entry.name
                child_rel = join_rel(rel, name)
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                    is_file = not is_dir and entry.is_file()
                except OSError as e:
                    logger.warning(f"Cannot stat {entry.path}: {e}")
                    result.errors += 1
                    continue
                if not (is_dir or is_file):
                    continue

                if is_dir and (name in ALWAYS_PRUNED_DIRS or child_rel in ALWAYS_PRUNED_PATHS):
                    continue
                if self._excluded(child_rel, is_dir):
                    result.skipped += 1
                    logger.debug(f"Skipped (exclude): {child_rel}")
                    continue
                if self.use_gitignore and is_ignored(Path(entry.path), is_dir, inherited):
                    result.skipped += 1
                    logger.debug(f"Skipped (gitignore): {child_rel}")
                    continue

                if policy is not None:
                    denied = policy.denied_child(rel, name, is_dir)
                    if denied is not None:
                        stats.denied.append(denied)
                        logger.debug(f"Denied: {child_rel} ({denied.pattern})")
                        continue
                counted = policy is None or not policy.count_excluded(child_rel)

                if is_dir:
                    if counted:
                        stats.dirs.append(name)
                    subdirs.append((Path(entry.path), child_rel, depth + 1, inherited))
                else:
                    if counted:
                        stats.files.append(name)
                    if self.file_filter is None or self.file_filter(child_rel):
                        result.files.append(ScannedFile(Path(entry.path), child_rel))

            result.dirs[rel] = stats
            stack.extend(reversed(subdirs))
