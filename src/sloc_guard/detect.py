"""Project type detection for ``init --detect``.

Marker files in the project root (and in its immediate subdirectories,
for monorepos) decide the extensions, default limit, excludes and preset
of the generated configuration.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .logging_config import get_logger

logger = get_logger(__name__)


class ProjectType(Enum):
    RUST = "rust"
    NODE = "node"
    GO = "go"
    PYTHON = "python"
    JAVA = "java"
    CSHARP = "csharp"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return _PROFILES[self].display_name

    @property
    def extensions(self) -> Tuple[str, ...]:
        return _PROFILES[self].extensions

    @property
    def max_lines(self) -> int:
        return _PROFILES[self].max_lines

    @property
    def excludes(self) -> Tuple[str, ...]:
        return _PROFILES[self].excludes

    @property
    def preset(self) -> Optional[str]:
        return _PROFILES[self].preset


@dataclass(frozen=True)
class _Profile:
    display_name: str
    extensions: Tuple[str, ...]
    max_lines: int
    excludes: Tuple[str, ...] = ()
    preset: Optional[str] = None


_PROFILES = {
    ProjectType.RUST: _Profile("Rust", ("rs",), 800, ("**/target/**",), "rust-strict"),
    ProjectType.NODE: _Profile(
        "Node.js/TypeScript",
        ("ts", "tsx", "js", "jsx", "mjs", "cjs"),
        400,
        ("**/node_modules/**", "**/dist/**", "**/build/**"),
        "node-strict",
    ),
    ProjectType.GO: _Profile("Go", ("go",), 600, ("**/vendor/**",), "go-strict"),
    ProjectType.PYTHON: _Profile(
        "Python",
        ("py", "pyi"),
        500,
        ("**/__pycache__/**", "**/.venv/**", "**/venv/**", "**/.tox/**"),
        "python-strict",
    ),
    ProjectType.JAVA: _Profile("Java/Kotlin", ("java", "kt"), 500, ("**/target/**", "**/build/**")),
    ProjectType.CSHARP: _Profile("C#/.NET", ("cs",), 600, ("**/bin/**", "**/obj/**")),
    ProjectType.UNKNOWN: _Profile("Unknown", ("rs", "go", "py", "js", "ts", "c", "cpp"), 500),
}

# Checked in this order; the first type with a marker present wins.
MARKERS: Tuple[Tuple[ProjectType, Tuple[str, ...]], ...] = (
    (ProjectType.RUST, ("Cargo.toml",)),
    (ProjectType.GO, ("go.mod",)),
    (ProjectType.NODE, ("package.json",)),
    (ProjectType.PYTHON, ("pyproject.toml", "setup.py", "requirements.txt", "Pipfile")),
    (ProjectType.JAVA, ("pom.xml", "build.gradle", "build.gradle.kts")),
)
CSHARP_SUFFIXES = (".csproj", ".sln")

# Subdirectories never inspected for subprojects.
SKIPPED_SUBDIRS = frozenset({
    "node_modules", "target", "vendor", "dist", "build", "__pycache__",
    ".venv", "venv", "bin", "obj", "packages",
})

MONOREPO_PRESET = "monorepo-base"


@dataclass(frozen=True)
class Subproject:
    path: str
    project_type: ProjectType


@dataclass
class Detection:
    root: Optional[ProjectType] = None
    subprojects: List[Subproject] = field(default_factory=list)

    @property
    def is_monorepo(self) -> bool:
        return bool(self.subprojects)

    @property
    def effective_type(self) -> ProjectType:
        return self.root or ProjectType.UNKNOWN

    @property
    def preset(self) -> Optional[str]:
        if self.root is not None:
            return self.root.preset
        if self.is_monorepo:
            return MONOREPO_PRESET
        return None

    @property
    def excludes(self) -> List[str]:
        patterns = {"**/.git/**"}
        if self.root is not None:
            patterns.update(self.root.excludes)
        for sub in self.subprojects:
            patterns.update(sub.project_type.excludes)
        return sorted(patterns)

    def describe(self) -> str:
        if self.is_monorepo:
            return "Monorepo"
        if self.root is not None:
            return f"{self.root.display_name} project"
        return "Unknown project type"


def detect_project_type(directory: Path) -> Optional[ProjectType]:
    """Project type of one directory, or None when it carries no marker."""
    for project_type, markers in MARKERS:
        if any((directory / marker).exists() for marker in markers):
            return project_type
    try:
        names = os.listdir(directory)
    except OSError:
        return None
    if any(name.lower().endswith(CSHARP_SUFFIXES) for name in names):
        return ProjectType.CSHARP
    return None


def detect_projects(root: Path) -> Detection:
    """Detect the root project and any subprojects one level below it.

    Raises OSError when ``root`` cannot be listed.
    """
    root = Path(root)
    detection = Detection(root=detect_project_type(root))
    with os.scandir(root) as it:
        subdirs = sorted(
            (entry for entry in it if entry.is_dir(follow_symlinks=False)), key=lambda e: e.name
        )
    for entry in subdirs:
        if entry.name.startswith(".") or entry.name in SKIPPED_SUBDIRS:
            continue
        project_type = detect_project_type(Path(entry.path))
        if project_type is not None:
            detection.subprojects.append(Subproject(entry.name, project_type))
    logger.debug(
        f"Detected {detection.describe()} in {root}: "
        f"{[(s.path, s.project_type.value) for s in detection.subprojects]}"
    )
    return detection


def _toml_list(values) -> str:
    return "[" + ", ".join(f'"{v}"' for v in values) + "]"


def render_detected_config(detection: Detection, preset: Optional[str] = None) -> str:
    """Configuration text for a detection; ``preset`` replaces the detected one."""
    effective = detection.effective_type
    extends = preset or detection.preset
    lines = [
        "# sloc-guard configuration file",
        f"# Detected: {detection.describe()}",
        "",
        'version = "2"',
    ]
    if extends:
        lines.append(f'extends = "{extends}"')
    lines += [
        "",
        "[scanner]",
        "gitignore = true",
        f"exclude = {_toml_list(detection.excludes)}",
        "",
        "[content]",
        f"extensions = {_toml_list(effective.extensions)}",
        f"max_lines = {effective.max_lines}",
        "warn_threshold = 0.9",
        "skip_comments = true",
        "skip_blank = true",
    ]
    for sub in detection.subprojects:
        lines += [
            "",
            f"# {sub.path} ({sub.project_type.display_name})",
            "[[content.rules]]",
            f'pattern = "{sub.path}/**"',
            f"max_lines = {sub.project_type.max_lines}",
        ]
    lines += [
        "",
        "# [structure]",
        "# max_files = 30",
        "# max_dirs = 10",
        "",
        "[baseline]",
        'path = ".sloc-guard-baseline.json"',
        'ratchet = "warn"',
    ]
    return "\n".join(lines) + "\n"
