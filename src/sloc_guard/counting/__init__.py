"""Line counting: classify each line of a source file as code, comment, blank or ignored."""

from .classifier import (
    CountResult,
    LineClassifier,
    LineKind,
    count,
    count_file,
    count_lines,
    count_stream,
    split_lines,
)
from .directives import Directive, DirectiveKind, parse_directive
from .models import IgnoredFile, LineStats

__all__ = [
    "CountResult",
    "Directive",
    "DirectiveKind",
    "IgnoredFile",
    "LineClassifier",
    "LineKind",
    "LineStats",
    "count",
    "count_file",
    "count_lines",
    "count_stream",
    "parse_directive",
    "split_lines",
]
