"""Directory structure limits: child counts, depth, allow/deny lists, siblings.

Resolution for a directory follows the same layering as content limits:
an override whose path is a whole-component suffix of the directory wins,
otherwise the last rule whose scope glob matches, otherwise the globals.
Individual limit fields fall back to the global value when unset.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

from ..config.models import UNLIMITED, SiblingRule, StructureConfig, StructureOverride, StructureRule
from ..logging_config import get_logger
from ..matching import Glob, GlobSet, normalize_path, pattern_base_depth, suffix_matches
from ..scanning.models import ROOT_DIR, DeniedEntry, DirStats
from .content import MatchedDefault, MatchedOverride, MatchedRule

logger = get_logger(__name__)


class ViolationType(str, Enum):
    FILE_COUNT = "files"
    DIR_COUNT = "dirs"
    MAX_DEPTH = "depth"
    DISALLOWED_FILE = "disallowed_file"
    DISALLOWED_DIR = "disallowed_dir"
    DENIED_FILE = "denied_file"
    DENIED_DIR = "denied_dir"
    NAMING_CONVENTION = "naming"
    MISSING_SIBLING = "missing_sibling"

    @property
    def is_count(self) -> bool:
        return self in (ViolationType.FILE_COUNT, ViolationType.DIR_COUNT)


_TYPE_ORDER = {t: i for i, t in enumerate(ViolationType)}


@dataclass
class StructureViolation:
    path: str
    kind: ViolationType
    actual: int
    limit: int
    is_warning: bool = False
    override_reason: Optional[str] = None
    triggering_rule_pattern: Optional[str] = None
    detail: Optional[str] = None  # matched deny pattern, naming regex or expected sibling

    def sort_key(self) -> Tuple[str, int, str]:
        return (self.path, _TYPE_ORDER[self.kind], self.detail or "")


@dataclass(frozen=True)
class StructureLimits:
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    relative_depth: bool = False
    base_depth: int = 0
    warn_threshold: Optional[float] = None
    warn_files_at: Optional[int] = None
    warn_dirs_at: Optional[int] = None
    warn_files_threshold: Optional[float] = None
    warn_dirs_threshold: Optional[float] = None
    override_reason: Optional[str] = None
    rule_index: Optional[int] = None
    source: str = "structure (default)"

    def effective_depth(self, depth: int) -> int:
        if self.relative_depth:
            return max(depth - self.base_depth, 0)
        return depth


@dataclass(frozen=True)
class StructureRuleCandidate:
    source: str
    pattern: Optional[str]
    status: str
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None


@dataclass
class StructureExplanation:
    path: str
    matched_rule: object
    limits: StructureLimits
    rule_chain: List[StructureRuleCandidate] = field(default_factory=list)


def _warn_limit(limit: int, warn_at: Optional[int], threshold: Optional[float]) -> Optional[int]:
    """Count at which a limit starts warning, or None when warnings are off.

    A limit of 0 never warns: any entry at all is already a failure.
    """
    if limit == 0:
        return None
    if warn_at is not None:
        return warn_at
    if threshold is None or threshold >= 1.0:
        return None
    return math.ceil(limit * threshold)


def _name_of(path: str) -> str:
    return PurePosixPath(path).name


def _ext_of(name: str) -> str:
    return PurePosixPath(name).suffix.lower()


class _AllowList:
    """Allow-lists for the immediate children of one directory."""

    def __init__(self, extensions=(), patterns=(), files=(), dirs=()):
        self.extensions = frozenset(extensions)
        self.patterns = GlobSet(patterns)
        self.files = GlobSet(files)
        self.dirs = GlobSet(dirs)

    @property
    def has_files(self) -> bool:
        return bool(self.extensions or self.patterns or self.files)

    @property
    def has_dirs(self) -> bool:
        return bool(self.dirs)

    def file_allowed(self, name: str) -> bool:
        return _ext_of(name) in self.extensions or self.patterns.is_match(name) or self.files.is_match(name)

    def dir_allowed(self, name: str) -> bool:
        return self.dirs.is_match(name)


class _CompiledRule:
    def __init__(self, index: int, rule: StructureRule):
        self.index = index
        self.rule = rule
        self.scope = Glob(rule.scope)
        self.base_depth = pattern_base_depth(rule.scope)
        self.allow = _AllowList(rule.allow_extensions, rule.allow_patterns, rule.allow_files, rule.allow_dirs)
        self.deny = _DenyList(
            rule.deny_extensions, rule.deny_patterns, rule.deny_files, rule.deny_dirs, scope=rule.scope
        )
        self.naming = re.compile(rule.file_naming_pattern) if rule.file_naming_pattern else None
        self.siblings = [_SiblingCheck(s) for s in rule.siblings]


class _DenyList:
    """Deny checks for the children of one directory.

    Patterns are matched against the child's name and its path; a
    ``deny_patterns`` entry ending in ``/`` only applies to directories.
    """

    def __init__(self, extensions, patterns, files, dirs, scope: Optional[str] = None):
        self.scope = scope
        self.extensions = frozenset(extensions)
        self.file_patterns = GlobSet(p for p in patterns if not p.endswith("/"))
        self.dir_patterns = GlobSet(
            [p.rstrip("/") for p in patterns if p.endswith("/")] + [d.rstrip("/") for d in dirs]
        )
        self.files = GlobSet(files)

    def __bool__(self) -> bool:
        return bool(self.extensions or self.file_patterns or self.dir_patterns or self.files)

    def match(self, name: str, rel: str, is_dir: bool) -> Optional[DeniedEntry]:
        if is_dir:
            pattern = self.dir_patterns.first_match(name) or self.dir_patterns.first_match(rel)
            return DeniedEntry(name, True, pattern, self.scope) if pattern else None
        ext = _ext_of(name)
        if ext and ext in self.extensions:
            return DeniedEntry(name, False, ext, self.scope)
        for globs in (self.file_patterns, self.files):
            pattern = globs.first_match(name) or globs.first_match(rel)
            if pattern:
                return DeniedEntry(name, False, pattern, self.scope)
        return None


class _SiblingCheck:
    """One ``siblings`` entry; ``{stem}`` is the file name up to its last dot."""

    def __init__(self, sibling: SiblingRule):
        self.sibling = sibling
        self.is_warning = sibling.severity == "warn"
        self.match = Glob(sibling.match) if sibling.match else None
        self.group = [(template, self._template_regex(template)) for template in sibling.group]

    @staticmethod
    def _template_regex(template: str) -> "re.Pattern[str]":
        parts = [re.escape(p) for p in template.split("{stem}")]
        return re.compile(r"\A" + "(.+)".join(parts) + r"\Z")

    def missing(self, files: Iterable[str]) -> List[Tuple[str, str]]:
        """(file, expected sibling) pairs for this entry within one directory."""
        present = set(files)
        missing: List[Tuple[str, str]] = []
        if self.match is not None:
            for name in sorted(present):
                if not self.match.matches(name):
                    continue
                stem = PurePosixPath(name).stem
                for template in self.sibling.require:
                    expected = template.replace("{stem}", stem)
                    if expected not in present:
                        missing.append((name, expected))
            return missing

        for name in sorted(present):
            for template, regex in self.group:
                m = regex.match(name)
                if not m:
                    continue
                stem = m.group(1) if m.groups() else ""
                for other, _ in self.group:
                    expected = other.replace("{stem}", stem)
                    if expected not in present and (name, expected) not in missing:
                        missing.append((name, expected))
                break
        return missing


class StructureChecker:
    """Evaluate per-directory tallies against structure limits.

    Also acts as the scanner's child policy: deny lists prune children
    during the walk and ``count_exclude`` keeps entries out of the tallies.
    """

    def __init__(self, config: StructureConfig):
        self.config = config
        self.rules = [_CompiledRule(i, r) for i, r in enumerate(config.rules)]
        self.overrides: List[StructureOverride] = list(config.overrides)
        self.count_exclude = GlobSet(config.count_exclude)
        self.global_deny = _DenyList(
            config.deny_extensions, config.deny_patterns, config.deny_files, config.deny_dirs
        )
        self.global_allow = _AllowList(config.allow_extensions, (), config.allow_files, config.allow_dirs)
        self._rule_cache: Dict[str, Optional[_CompiledRule]] = {}

    @property
    def is_enabled(self) -> bool:
        return self.config.is_enabled or bool(self.global_deny)

    # -- resolution --

    def _override_for(self, path: str) -> Optional[Tuple[int, StructureOverride]]:
        for i, override in enumerate(self.overrides):
            if suffix_matches(path, override.path):
                return i, override
        return None

    def _rule_for(self, path: str) -> Optional[_CompiledRule]:
        if path in self._rule_cache:
            return self._rule_cache[path]
        winner = None
        for compiled in self.rules:
            if compiled.scope.matches(path):
                winner = compiled
        self._rule_cache[path] = winner
        return winner

    def resolve(self, path) -> StructureLimits:
        normalized = normalize_path(path)
        c = self.config
        found = self._override_for(normalized)
        if found is not None:
            index, override = found
            return StructureLimits(
                max_files=override.max_files if override.max_files is not None else c.max_files,
                max_dirs=override.max_dirs if override.max_dirs is not None else c.max_dirs,
                max_depth=override.max_depth if override.max_depth is not None else c.max_depth,
                warn_threshold=c.warn_threshold,
                warn_files_at=c.warn_files_at,
                warn_dirs_at=c.warn_dirs_at,
                warn_files_threshold=c.warn_files_threshold,
                warn_dirs_threshold=c.warn_dirs_threshold,
                override_reason=override.reason,
                source=f"structure.overrides[{index}]",
            )

        compiled = self._rule_for(normalized)
        if compiled is not None:
            rule = compiled.rule

            def pick(name):
                value = getattr(rule, name)
                return value if value is not None else getattr(c, name)

            return StructureLimits(
                max_files=pick("max_files"),
                max_dirs=pick("max_dirs"),
                max_depth=pick("max_depth"),
                relative_depth=rule.relative_depth,
                base_depth=compiled.base_depth,
                warn_threshold=pick("warn_threshold"),
                warn_files_at=pick("warn_files_at"),
                warn_dirs_at=pick("warn_dirs_at"),
                warn_files_threshold=pick("warn_files_threshold"),
                warn_dirs_threshold=pick("warn_dirs_threshold"),
                rule_index=compiled.index,
                source=f"structure.rules[{compiled.index}]",
            )

        return StructureLimits(
            max_files=c.max_files,
            max_dirs=c.max_dirs,
            max_depth=c.max_depth,
            warn_threshold=c.warn_threshold,
            warn_files_at=c.warn_files_at,
            warn_dirs_at=c.warn_dirs_at,
            warn_files_threshold=c.warn_files_threshold,
            warn_dirs_threshold=c.warn_dirs_threshold,
        )

    # -- scanner child policy --

    def denied_child(self, dir_rel: str, name: str, is_dir: bool) -> Optional[DeniedEntry]:
        parent = normalize_path(dir_rel)
        child_rel = f"{parent}/{name}" if parent else name
        denied = self.global_deny.match(name, child_rel, is_dir)
        if denied is not None:
            return denied
        compiled = self._rule_for(parent)
        if compiled is not None and compiled.deny:
            return compiled.deny.match(name, child_rel, is_dir)
        return None

    def count_excluded(self, rel: str) -> bool:
        if not self.count_exclude:
            return False
        return self.count_exclude.is_match(rel) or self.count_exclude.is_match(_name_of(rel))

    # -- checks --

    def check(self, dirs: Dict[str, DirStats]) -> List[StructureViolation]:
        """Violations for every tallied directory, sorted by path then type."""
        violations: List[StructureViolation] = []
        for key in sorted(dirs):
            violations.extend(self.check_dir(dirs[key]))
        violations.sort(key=StructureViolation.sort_key)
        logger.debug(f"Structure check: {len(dirs)} directories, {len(violations)} violations")
        return violations

    def check_dir(self, stats: DirStats) -> List[StructureViolation]:
        path = normalize_path(stats.path)
        display = path or ROOT_DIR
        limits = self.resolve(path)
        reason = limits.override_reason
        out: List[StructureViolation] = []

        def child(name: str) -> str:
            return f"{path}/{name}" if path else name

        counts = (
            (ViolationType.FILE_COUNT, stats.file_count, limits.max_files,
             limits.warn_files_at, limits.warn_files_threshold),
            (ViolationType.DIR_COUNT, stats.dir_count, limits.max_dirs,
             limits.warn_dirs_at, limits.warn_dirs_threshold),
        )
        for kind, actual, limit, warn_at, threshold in counts:
            if limit is None or limit == UNLIMITED:
                continue
            if actual > limit:
                out.append(StructureViolation(display, kind, actual, limit, override_reason=reason))
                continue
            warn = _warn_limit(limit, warn_at, threshold if threshold is not None else limits.warn_threshold)
            if warn is not None and actual >= warn:
                out.append(
                    StructureViolation(display, kind, actual, limit, is_warning=True, override_reason=reason)
                )

        if limits.max_depth is not None and limits.max_depth != UNLIMITED:
            depth = limits.effective_depth(stats.depth)
            if depth > limits.max_depth:
                out.append(
                    StructureViolation(
                        display, ViolationType.MAX_DEPTH, depth, limits.max_depth, override_reason=reason
                    )
                )
            else:
                warn = _warn_limit(limits.max_depth, None, limits.warn_threshold)
                if warn is not None and depth >= warn:
                    out.append(
                        StructureViolation(
                            display, ViolationType.MAX_DEPTH, depth, limits.max_depth,
                            is_warning=True, override_reason=reason,
                        )
                    )

        for entry in stats.denied:
            out.append(
                StructureViolation(
                    child(entry.name),
                    ViolationType.DENIED_DIR if entry.is_dir else ViolationType.DENIED_FILE,
                    1,
                    0,
                    override_reason=reason,
                    triggering_rule_pattern=entry.rule_scope,
                    detail=entry.pattern,
                )
            )

        compiled = self._rule_for(path) if limits.rule_index is not None else None
        if reason is None:
            out.extend(self._check_allowed(compiled, stats, child))
        if compiled is not None:
            out.extend(self._check_rule_files(compiled, stats, child, reason))
        return out

    def _check_allowed(self, compiled: Optional[_CompiledRule], stats: DirStats, child) -> List[StructureViolation]:
        """Allow-lists of the matched rule; the global ones fill in for each kind it leaves unset."""
        out: List[StructureViolation] = []
        file_scope = dir_scope = None
        files = dirs = self.global_allow
        if compiled is not None and compiled.allow.has_files:
            files, file_scope = compiled.allow, compiled.rule.scope
        if compiled is not None and compiled.allow.has_dirs:
            dirs, dir_scope = compiled.allow, compiled.rule.scope

        if files.has_files:
            for name in stats.files:
                if not files.file_allowed(name):
                    out.append(
                        StructureViolation(
                            child(name), ViolationType.DISALLOWED_FILE, 1, 0,
                            triggering_rule_pattern=file_scope,
                        )
                    )
        if dirs.has_dirs:
            for name in stats.dirs:
                if not dirs.dir_allowed(name):
                    out.append(
                        StructureViolation(
                            child(name), ViolationType.DISALLOWED_DIR, 1, 0,
                            triggering_rule_pattern=dir_scope,
                        )
                    )
        return out

    def _check_rule_files(self, compiled: _CompiledRule, stats: DirStats, child, reason) -> List[StructureViolation]:
        out: List[StructureViolation] = []
        scope = compiled.rule.scope

        if compiled.naming is not None:
            for name in stats.files:
                if not compiled.naming.search(name):
                    out.append(
                        StructureViolation(
                            child(name), ViolationType.NAMING_CONVENTION, 1, 0,
                            override_reason=reason, triggering_rule_pattern=scope,
                            detail=compiled.naming.pattern,
                        )
                    )

        for sibling in compiled.siblings:
            for name, expected in sibling.missing(stats.files):
                out.append(
                    StructureViolation(
                        child(name), ViolationType.MISSING_SIBLING, 0, 1,
                        is_warning=sibling.is_warning, override_reason=reason,
                        triggering_rule_pattern=scope, detail=expected,
                    )
                )
        return out

    # -- explain --

    def explain(self, path) -> StructureExplanation:
        normalized = normalize_path(path)
        chain: List[StructureRuleCandidate] = []
        override = self._override_for(normalized)
        winner = self._rule_for(normalized)

        for i, candidate in enumerate(self.overrides):
            if override is not None and i == override[0]:
                status = "matched"
            elif suffix_matches(normalized, candidate.path):
                status = "superseded"
            else:
                status = "no_match"
            chain.append(
                StructureRuleCandidate(
                    f"structure.overrides[{i}]", candidate.path, status,
                    candidate.max_files, candidate.max_dirs, candidate.max_depth,
                )
            )

        for compiled in self.rules:
            rule = compiled.rule
            if not compiled.scope.matches(normalized):
                status = "no_match"
            elif override is None and winner is compiled:
                status = "matched"
            else:
                status = "superseded"
            chain.append(
                StructureRuleCandidate(
                    f"structure.rules[{compiled.index}]", rule.scope, status,
                    rule.max_files, rule.max_dirs, rule.max_depth,
                )
            )

        c = self.config
        chain.append(
            StructureRuleCandidate(
                "structure (default)", None,
                "matched" if override is None and winner is None else "superseded",
                c.max_files, c.max_dirs, c.max_depth,
            )
        )

        if override is not None:
            matched = MatchedOverride(override[0], override[1].path, override[1].reason)
        elif winner is not None:
            matched = MatchedRule(winner.index, winner.rule.scope, winner.rule.reason)
        else:
            matched = MatchedDefault()
        return StructureExplanation(normalized or ROOT_DIR, matched, self.resolve(normalized), chain)
