"""Aggregate line statistics for the ``stats`` command."""

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, List, Optional

from .counting.models import LineStats
from .history import TrendDelta


@dataclass
class FileStat:
    path: str
    language: str
    stats: LineStats


@dataclass
class BreakdownRow:
    key: str
    files: int
    stats: LineStats


@dataclass
class StatsReport:
    files: List[FileStat] = field(default_factory=list)
    breakdown_by: str = "lang"
    top_count: int = 10
    excluded_sections: List[str] = field(default_factory=list)
    trend: Optional[TrendDelta] = None
    skipped: int = 0
    errors: int = 0

    @property
    def totals(self) -> LineStats:
        total = LineStats()
        for f in self.files:
            total = total + f.stats
        return total

    @property
    def by_directory(self) -> bool:
        return self.breakdown_by.lower() in ("dir", "directory")

    def shows(self, section: str) -> bool:
        return section not in {s.lower() for s in self.excluded_sections}

    def breakdown(self) -> List[BreakdownRow]:
        """Rows sorted by code lines, largest first."""
        counts: Dict[str, int] = defaultdict(int)
        sums: Dict[str, LineStats] = defaultdict(LineStats)
        for f in self.files:
            if self.by_directory:
                key = str(PurePosixPath(f.path).parent)
            else:
                key = f.language
            counts[key] += 1
            sums[key] = sums[key] + f.stats
        rows = [BreakdownRow(k, counts[k], sums[k]) for k in sums]
        rows.sort(key=lambda r: (-r.stats.code, r.key))
        return rows

    def top_files(self) -> List[FileStat]:
        ranked = sorted(self.files, key=lambda f: (-f.stats.code, f.path))
        return ranked[: self.top_count]

    def to_dict(self) -> dict:
        data: dict = {}
        totals = self.totals
        if self.shows("summary"):
            data["summary"] = {"total_files": len(self.files), **totals.to_dict()}
        if self.shows("breakdown"):
            data["breakdown"] = {
                "by": "directory" if self.by_directory else "language",
                "rows": [
                    {"key": r.key, "files": r.files, **r.stats.to_dict()} for r in self.breakdown()
                ],
            }
        if self.shows("files"):
            data["top_files"] = [
                {"path": f.path, "language": f.language, **f.stats.to_dict()} for f in self.top_files()
            ]
        if self.shows("trend") and self.trend is not None:
            data["trend"] = {
                "files": self.trend.files,
                "code": self.trend.code,
                "comment": self.trend.comment,
                "blank": self.trend.blank,
            }
        return data
