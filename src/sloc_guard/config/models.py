"""Configuration model (``version = "2"``).

All sections are frozen dataclasses with defaults, so an empty
``.sloc-guard.toml`` is a valid configuration. Structure limits use
``-1`` to mean unlimited and ``None`` to mean "not set here".
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field
from typing import Dict, Optional

CONFIG_VERSION = "2"
CONFIG_FILENAME = ".sloc-guard.toml"
BASELINE_FILENAME = ".sloc-guard-baseline.json"
UNLIMITED = -1

DEFAULT_EXTENSIONS = ["rs", "go", "py", "js", "ts", "c", "cpp"]
DEFAULT_SCANNER_EXCLUDE = [".git/**"]

RATCHET_MODES = ("off", "warn", "auto", "strict")
SIBLING_SEVERITIES = ("error", "warn")
REPORT_SECTIONS = ("summary", "files", "breakdown", "trend")
BREAKDOWN_BY = ("lang", "language", "dir", "directory")


def _normalize_extensions(extensions: list[str], with_dot: bool = False) -> list[str]:
    cleaned = [e.strip().lstrip(".").lower() for e in extensions]
    if with_dot:
        return ["." + e for e in cleaned]
    return cleaned


@dataclass(frozen=True)
class ScannerConfig:
    """File discovery settings.

    Attributes:
        gitignore: Honor .gitignore files (nested ones included)
        exclude: Globs pruned from traversal. Replaces the default list;
            ``.git`` is pruned regardless.
        include_paths: Scan roots used when none are given on the command line
    """

    gitignore: bool = True
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_SCANNER_EXCLUDE))
    include_paths: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ContentRule:
    """A glob-scoped content limit. Unset fields fall back to the global values."""

    pattern: str
    max_lines: Optional[int] = None
    warn_threshold: Optional[float] = None
    warn_at: Optional[int] = None
    skip_comments: Optional[bool] = None
    skip_blank: Optional[bool] = None
    reason: Optional[str] = None
    expires: Optional[str] = None


@dataclass(frozen=True)
class ContentOverride:
    """An explicit per-file limit matched by whole-component path suffix."""

    path: str
    max_lines: int
    reason: str
    expires: Optional[str] = None


@dataclass(frozen=True)
class ContentConfig:
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    max_lines: int = 500
    warn_threshold: float = 0.9
    warn_at: Optional[int] = None
    skip_comments: bool = True
    skip_blank: bool = True
    exclude: list[str] = field(default_factory=list)
    rules: list[ContentRule] = field(default_factory=list)
    overrides: list[ContentOverride] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extensions", _normalize_extensions(self.extensions))


@dataclass(frozen=True)
class SiblingRule:
    """Files that must live next to each other.

    Directed form: every file matching ``match`` needs each ``require``
    template (``{stem}`` expands to the matched file's stem). Group form:
    if any ``group`` pattern is present, all of them must be.
    """

    match: Optional[str] = None
    require: list[str] = field(default_factory=list)
    group: list[str] = field(default_factory=list)
    severity: str = "error"

    @property
    def is_group(self) -> bool:
        return bool(self.group)


@dataclass(frozen=True)
class StructureRule:
    scope: str
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    relative_depth: bool = False
    warn_threshold: Optional[float] = None
    warn_files_at: Optional[int] = None
    warn_dirs_at: Optional[int] = None
    warn_files_threshold: Optional[float] = None
    warn_dirs_threshold: Optional[float] = None
    allow_extensions: list[str] = field(default_factory=list)
    allow_patterns: list[str] = field(default_factory=list)
    allow_files: list[str] = field(default_factory=list)
    allow_dirs: list[str] = field(default_factory=list)
    deny_extensions: list[str] = field(default_factory=list)
    deny_patterns: list[str] = field(default_factory=list)
    deny_files: list[str] = field(default_factory=list)
    deny_dirs: list[str] = field(default_factory=list)
    file_naming_pattern: Optional[str] = None
    siblings: list[SiblingRule] = field(default_factory=list)
    reason: Optional[str] = None
    expires: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "allow_extensions", _normalize_extensions(self.allow_extensions, with_dot=True)
        )
        object.__setattr__(
            self, "deny_extensions", _normalize_extensions(self.deny_extensions, with_dot=True)
        )


@dataclass(frozen=True)
class StructureOverride:
    path: str
    reason: str
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    expires: Optional[str] = None


@dataclass(frozen=True)
class StructureConfig:
    max_files: Optional[int] = None
    max_dirs: Optional[int] = None
    max_depth: Optional[int] = None
    warn_threshold: Optional[float] = None
    warn_files_at: Optional[int] = None
    warn_dirs_at: Optional[int] = None
    warn_files_threshold: Optional[float] = None
    warn_dirs_threshold: Optional[float] = None
    count_exclude: list[str] = field(default_factory=list)
    allow_extensions: list[str] = field(default_factory=list)
    allow_files: list[str] = field(default_factory=list)
    allow_dirs: list[str] = field(default_factory=list)
    deny_extensions: list[str] = field(default_factory=list)
    deny_patterns: list[str] = field(default_factory=list)
    deny_files: list[str] = field(default_factory=list)
    deny_dirs: list[str] = field(default_factory=list)
    rules: list[StructureRule] = field(default_factory=list)
    overrides: list[StructureOverride] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "allow_extensions", _normalize_extensions(self.allow_extensions, with_dot=True)
        )
        object.__setattr__(
            self, "deny_extensions", _normalize_extensions(self.deny_extensions, with_dot=True)
        )

    @property
    def is_enabled(self) -> bool:
        return (
            self.max_files is not None
            or self.max_dirs is not None
            or self.max_depth is not None
            or bool(self.allow_extensions or self.allow_files or self.allow_dirs)
            or bool(self.rules)
            or bool(self.overrides)
        )


@dataclass(frozen=True)
class BaselineConfig:
    path: str = BASELINE_FILENAME
    ratchet: str = "warn"


@dataclass(frozen=True)
class TrendConfig:
    max_entries: int = 100


@dataclass(frozen=True)
class StatsReportConfig:
    exclude: list[str] = field(default_factory=list)
    top_count: int = 10
    breakdown_by: str = "lang"


@dataclass(frozen=True)
class StatsConfig:
    report: StatsReportConfig = field(default_factory=StatsReportConfig)


@dataclass(frozen=True)
class CustomLanguageConfig:
    extensions: list[str]
    single_line_comments: list[str] = field(default_factory=list)
    multi_line_comments: list[list[str]] = field(default_factory=list)


@dataclass(frozen=True)
class Config:
    version: str = CONFIG_VERSION
    extends: Optional[str] = None
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    structure: StructureConfig = field(default_factory=StructureConfig)
    baseline: BaselineConfig = field(default_factory=BaselineConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    languages: Dict[str, CustomLanguageConfig] = field(default_factory=dict)

    # Where the config came from; not part of the config itself.
    source: Optional[str] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("source", None)
        return data

    def content_hash(self) -> str:
        """Stable hash of the settings that affect line counting results."""
        payload = {
            "content": asdict(self.content),
            "languages": {k: asdict(v) for k, v in sorted(self.languages.items())},
        }
        encoded = json.dumps(payload, sort_keys=True, default=str).encode()
        return hashlib.sha256(encoded).hexdigest()[:16]
