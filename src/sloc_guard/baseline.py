"""Baseline management: grandfathered violations and the ratchet.

The baseline file maps paths to known violations::

    {
      "version": 2,
      "files": {
        "src/legacy.rs": {"type": "content", "lines": 700, "hash": "…"},
        "src/modules":   {"type": "structure", "violation_type": "files", "count": 42}
      }
    }

Version 1 files held untagged content entries only and are migrated on load.
"""

import hashlib
import json
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Union

from .exceptions import BaselineError
from .logging_config import get_logger
from .models import CONTENT_KIND, Category, Finding, Severity

logger = get_logger(__name__)

BASELINE_VERSION = 2
HASH_CHUNK_SIZE = 8192
STRUCTURE_KINDS = ("files", "dirs")


class RatchetMode(str, Enum):
    OFF = "off"
    WARN = "warn"
    AUTO = "auto"
    STRICT = "strict"


class BaselineUpdateMode(str, Enum):
    ALL = "all"
    CONTENT = "content"
    STRUCTURE = "structure"
    NEW = "new"


@dataclass(frozen=True)
class ContentEntry:
    lines: int
    hash: str

    def to_dict(self) -> dict:
        return {"type": "content", "lines": self.lines, "hash": self.hash}


@dataclass(frozen=True)
class StructureEntry:
    violation_type: str
    count: int

    def to_dict(self) -> dict:
        return {"type": "structure", "violation_type": self.violation_type, "count": self.count}


Entry = Union[ContentEntry, StructureEntry]


def hash_file(path: Path) -> str:
    """SHA-256 of a file's raw bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _entry_from_dict(path: str, data: dict) -> Entry:
    kind = data.get("type", CONTENT_KIND)
    try:
        if kind == CONTENT_KIND:
            return ContentEntry(lines=int(data["lines"]), hash=str(data.get("hash", "")))
        if kind == "structure":
            violation_type = str(data["violation_type"])
            if violation_type not in STRUCTURE_KINDS:
                raise ValueError(f"unknown violation_type {violation_type!r}")
            return StructureEntry(violation_type=violation_type, count=int(data["count"]))
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"invalid entry for {path}: {e}")
    raise ValueError(f"invalid entry for {path}: unknown type {kind!r}")


@dataclass
class Baseline:
    files: Dict[str, Entry] = field(default_factory=dict)
    version: int = BASELINE_VERSION

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def get(self, path: str) -> Optional[Entry]:
        return self.files.get(path)

    def content_entries(self) -> Dict[str, ContentEntry]:
        return {p: e for p, e in self.files.items() if isinstance(e, ContentEntry)}

    def structure_entries(self) -> Dict[str, StructureEntry]:
        return {p: e for p, e in self.files.items() if isinstance(e, StructureEntry)}

    def to_dict(self) -> dict:
        return {
            "version": BASELINE_VERSION,
            "files": {path: self.files[path].to_dict() for path in sorted(self.files)},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Baseline":
        """Parse v1 or v2 data. Raises ValueError on malformed input."""
        if not isinstance(data, dict):
            raise ValueError("baseline must be a JSON object")
        version = data.get("version", 1)
        raw = data.get("files", {})
        if not isinstance(raw, dict):
            raise ValueError("'files' must be an object")
        if version not in (1, BASELINE_VERSION):
            raise ValueError(f"unsupported baseline version {version!r}")

        files: Dict[str, Entry] = {}
        for path, entry in raw.items():
            if not isinstance(entry, dict):
                raise ValueError(f"invalid entry for {path}")
            if version == 1:
                entry = {"type": CONTENT_KIND, **entry}
            files[path.replace("\\", "/")] = _entry_from_dict(path, entry)
        if version == 1:
            logger.debug(f"Migrated v1 baseline with {len(files)} entries")
        return cls(files=files)


def load_baseline(path: Path) -> Baseline:
    """Load a baseline file. Raises BaselineError when missing or malformed."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise BaselineError(path, "file not found")
    except OSError as e:
        raise BaselineError(path, e.strerror or str(e))
    except json.JSONDecodeError as e:
        raise BaselineError(path, f"invalid JSON: {e}")

    try:
        baseline = Baseline.from_dict(data)
    except ValueError as e:
        raise BaselineError(path, str(e))
    logger.info(f"Loaded baseline with {len(baseline)} entries from {path}")
    return baseline


def save_baseline(baseline: Baseline, path: Path) -> None:
    """Write pretty-printed JSON through a temp file and an atomic rename."""
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(baseline.to_dict(), f, indent=2)
            f.write("\n")
        os.replace(tmp, path)
    except OSError as e:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise BaselineError(path, e.strerror or str(e))
    logger.info(f"Saved baseline with {len(baseline)} entries to {path}")


# -- building entries from findings --


def _over_limit(finding: Finding) -> bool:
    if finding.is_content:
        return finding.actual > finding.limit
    return finding.kind in STRUCTURE_KINDS and finding.actual > finding.limit


def entry_for(finding: Finding) -> Optional[Entry]:
    """Baseline entry recording ``finding``, or None if it is not baselineable."""
    if not _over_limit(finding):
        return None
    if finding.is_content:
        return ContentEntry(lines=finding.actual, hash=finding.file_hash or "")
    return StructureEntry(violation_type=finding.kind, count=finding.actual)


def _entries_from(findings: Iterable[Finding], content: bool, structure: bool) -> Dict[str, Entry]:
    entries: Dict[str, Entry] = {}
    for finding in findings:
        if finding.is_content and not content:
            continue
        if not finding.is_content and not structure:
            continue
        entry = entry_for(finding)
        # One entry per path: the first structure violation of a directory is kept
        if entry is not None and finding.path not in entries:
            entries[finding.path] = entry
    return entries


def build_baseline(findings: Iterable[Finding]) -> Baseline:
    return Baseline(files=_entries_from(findings, content=True, structure=True))


def update_baseline(
    existing: Optional[Baseline], findings: List[Finding], mode: BaselineUpdateMode
) -> Baseline:
    """Merge current violations into ``existing`` according to ``mode``."""
    mode = BaselineUpdateMode(mode)
    existing = existing or Baseline()

    if mode is BaselineUpdateMode.ALL:
        return build_baseline(findings)

    if mode is BaselineUpdateMode.NEW:
        files = dict(existing.files)
        for path, entry in _entries_from(findings, content=True, structure=True).items():
            files.setdefault(path, entry)
        return Baseline(files=files)

    if mode is BaselineUpdateMode.CONTENT:
        files: Dict[str, Entry] = dict(existing.structure_entries())
        fresh = _entries_from(findings, content=True, structure=False)
    else:
        files = dict(existing.content_entries())
        fresh = _entries_from(findings, content=False, structure=True)
    for path, entry in fresh.items():
        files.setdefault(path, entry)
    return Baseline(files=files)


def stale_entries(
    baseline: Baseline, findings: Iterable[Finding], checked: Optional[Set[str]] = None
) -> List[str]:
    """Recorded paths that no longer violate.

    With ``checked`` given, only entries whose path was evaluated this run
    are considered; content entries outside it are never reported.
    """
    still = {f.path for f in findings if _over_limit(f)}
    stale = []
    for path, entry in sorted(baseline.files.items()):
        if path in still:
            continue
        if checked is not None and isinstance(entry, ContentEntry) and path not in checked:
            continue
        stale.append(path)
    return stale


def tighten_baseline(
    baseline: Baseline, findings: List[Finding], checked: Optional[Set[str]] = None
) -> Baseline:
    """Drop stale entries and lower recorded counts to the current values."""
    current = {f.path: f for f in findings if _over_limit(f)}
    stale = set(stale_entries(baseline, findings, checked))
    files: Dict[str, Entry] = {}
    for path, entry in baseline.files.items():
        if path in stale:
            continue
        finding = current.get(path)
        if finding is None:
            files[path] = entry
        elif isinstance(entry, ContentEntry) and finding.is_content:
            if finding.actual <= entry.lines:
                files[path] = ContentEntry(lines=finding.actual, hash=finding.file_hash or entry.hash)
            else:
                files[path] = entry
        elif isinstance(entry, StructureEntry) and finding.kind == entry.violation_type:
            files[path] = replace(entry, count=min(entry.count, finding.actual))
        else:
            files[path] = entry
    return Baseline(files=files)


# -- ratchet --


def apply_ratchet(finding: Finding, baseline: Optional[Baseline], mode: RatchetMode) -> Finding:
    """Reclassify a finding against the baseline.

    Known violations that have not worsened are grandfathered and demoted
    to warnings; worsened ones fail with category ``worsened``. In strict
    mode a known violation must be unchanged to be grandfathered.
    """
    mode = RatchetMode(mode)
    if baseline is None or mode is RatchetMode.OFF or not finding.is_violation:
        return finding
    entry = baseline.get(finding.path)
    if entry is None:
        return finding

    if finding.is_content:
        if not isinstance(entry, ContentEntry):
            return finding
        if mode is RatchetMode.STRICT:
            known = finding.actual == entry.lines and (
                not entry.hash or not finding.file_hash or finding.file_hash == entry.hash
            )
        else:
            known = finding.actual <= entry.lines
    else:
        if not isinstance(entry, StructureEntry) or entry.violation_type != finding.kind:
            return finding
        if mode is RatchetMode.STRICT:
            known = finding.actual == entry.count
        else:
            known = finding.actual <= entry.count

    if known:
        severity = Severity.WARN if finding.severity is Severity.FAIL else finding.severity
        return replace(finding, severity=severity, category=Category.GRANDFATHERED)
    return replace(finding, severity=Severity.FAIL, category=Category.WORSENED)
