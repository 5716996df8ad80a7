"""Scanner output: candidate files and per-directory child tallies."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

ROOT_DIR = "."


@dataclass
class DeniedEntry:
    name: str
    is_dir: bool
    pattern: str  # The deny pattern or extension that matched
    rule_scope: Optional[str] = None  # None for global deny lists


@dataclass
class DirStats:
    """Immediate children of one directory.

    ``files`` and ``dirs`` are the counted children (denied and
    count-excluded entries left out); depth is 0 at the scan root.
    """

    path: str
    depth: int
    files: List[str] = field(default_factory=list)
    dirs: List[str] = field(default_factory=list)
    denied: List[DeniedEntry] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def dir_count(self) -> int:
        return len(self.dirs)


@dataclass
class ScannedFile:
    path: Path  # Filesystem path, usable for reading
    rel_path: str  # Normalized path relative to the project root


@dataclass
class ScanResult:
    files: List[ScannedFile] = field(default_factory=list)
    dirs: Dict[str, DirStats] = field(default_factory=dict)
    skipped: int = 0
    errors: int = 0

    def merge(self, other: "ScanResult") -> None:
        known = {f.rel_path for f in self.files}
        self.files.extend(f for f in other.files if f.rel_path not in known)
        for key, stats in other.dirs.items():
            self.dirs.setdefault(key, stats)
        self.skipped += other.skipped
        self.errors += other.errors
