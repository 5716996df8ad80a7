"""Result types produced by the line classifier."""

from dataclasses import dataclass
from typing import Dict


@dataclass
class LineStats:
    """Per-file line buckets. Every physical line lands in exactly one bucket."""

    code: int = 0
    comment: int = 0
    blank: int = 0
    ignored: int = 0

    @property
    def total(self) -> int:
        return self.code + self.comment + self.blank + self.ignored

    @property
    def sloc(self) -> int:
        return self.code

    def effective_lines(self, skip_comments: bool = True, skip_blank: bool = True) -> int:
        """Lines counted against a limit. Ignored lines never count."""
        lines = self.code
        if not skip_comments:
            lines += self.comment
        if not skip_blank:
            lines += self.blank
        return lines

    def __add__(self, other: "LineStats") -> "LineStats":
        return LineStats(
            code=self.code + other.code,
            comment=self.comment + other.comment,
            blank=self.blank + other.blank,
            ignored=self.ignored + other.ignored,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "code": self.code,
            "comment": self.comment,
            "blank": self.blank,
            "ignored": self.ignored,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "LineStats":
        return cls(
            code=int(data.get("code", 0)),
            comment=int(data.get("comment", 0)),
            blank=int(data.get("blank", 0)),
            ignored=int(data.get("ignored", 0)),
        )


@dataclass(frozen=True)
class IgnoredFile:
    """Returned instead of LineStats when a file opts out via ``sloc-guard:ignore-file``."""

    total: int = 0

    def to_stats(self) -> LineStats:
        return LineStats(ignored=self.total)
