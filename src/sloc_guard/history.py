"""Trend history: one aggregate entry per ``stats`` run in ``history.json``."""

import json
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

from .counting.models import LineStats
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class HistoryEntry:
    timestamp: int
    total_files: int
    code: int
    comment: int
    blank: int
    ignored: int = 0
    git_ref: Optional[str] = None

    @classmethod
    def from_totals(cls, total_files: int, totals: LineStats, git_ref: Optional[str] = None) -> "HistoryEntry":
        return cls(
            timestamp=int(time.time()),
            total_files=total_files,
            code=totals.code,
            comment=totals.comment,
            blank=totals.blank,
            ignored=totals.ignored,
            git_ref=git_ref,
        )


@dataclass
class TrendDelta:
    files: int
    code: int
    comment: int
    blank: int
    previous_timestamp: int

    @property
    def has_changes(self) -> bool:
        return any((self.files, self.code, self.comment, self.blank))


def compute_delta(previous: HistoryEntry, current: HistoryEntry) -> TrendDelta:
    return TrendDelta(
        files=current.total_files - previous.total_files,
        code=current.code - previous.code,
        comment=current.comment - previous.comment,
        blank=current.blank - previous.blank,
        previous_timestamp=previous.timestamp,
    )


def load_history(path: Path) -> List[HistoryEntry]:
    """Entries oldest first. A missing or unreadable file is an empty history."""
    path = Path(path)
    if not path.exists():
        return []
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        entries = raw.get("entries", []) if isinstance(raw, dict) else raw
        return [HistoryEntry(**entry) for entry in entries]
    except (OSError, ValueError, TypeError) as e:
        logger.warning(f"Ignoring unreadable history file {path}: {e}")
        return []


def save_history(path: Path, entries: List[HistoryEntry]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"version": 1, "entries": [asdict(e) for e in entries]}, f, indent=2)
        os.replace(tmp, path)
    except OSError:
        if tmp.exists():
            tmp.unlink()
        raise


def record_entry(path: Path, entry: HistoryEntry, max_entries: int) -> Optional[TrendDelta]:
    """Append ``entry``, trim to ``max_entries`` and return the delta to the previous run."""
    entries = load_history(path)
    delta = compute_delta(entries[-1], entry) if entries else None
    entries.append(entry)
    if len(entries) > max_entries:
        entries = entries[-max_entries:]
    try:
        save_history(path, entries)
    except OSError as e:
        logger.warning(f"Could not write history file {path}: {e}")
    return delta
