"""File discovery: plain and gitignore-aware walks with per-directory tallies."""

from .gitignore import GitIgnoreRule, is_ignored, parse_gitignore_lines
from .models import ROOT_DIR, DeniedEntry, DirStats, ScannedFile, ScanResult
from .scanner import Scanner, join_rel

__all__ = [
    "ROOT_DIR",
    "DeniedEntry",
    "DirStats",
    "GitIgnoreRule",
    "ScanResult",
    "ScannedFile",
    "Scanner",
    "is_ignored",
    "join_rel",
    "parse_gitignore_lines",
]
