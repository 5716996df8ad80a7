"""Split suggestions for files over their line limit.

Function boundaries come from the language's ``function_patterns``; a
function runs from its definition line to the line before the next one.
Consecutive functions are packed greedily into chunks that stay under the
target size.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List, Optional, Sequence

from .languages import Language


@dataclass
class FunctionInfo:
    name: str
    start_line: int  # 1-indexed
    end_line: int

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class SplitChunk:
    suggested_name: str
    functions: List[str] = field(default_factory=list)
    start_line: int = 1
    end_line: int = 1
    line_count: int = 0

    def describe(self) -> str:
        names = ", ".join(self.functions)
        return (
            f"Move {names} (lines {self.start_line}-{self.end_line}, "
            f"{self.line_count} lines) to {self.suggested_name}"
        )


def find_functions(lines: Sequence[str], language: Language) -> List[FunctionInfo]:
    """Locate top-level definitions with the language's patterns."""
    if not language.function_patterns:
        return []
    patterns = [re.compile(p) for p in language.function_patterns]
    starts = []
    for number, line in enumerate(lines, start=1):
        for pattern in patterns:
            m = pattern.match(line)
            if m:
                name = m.group(1) if m.groups() else line.strip()
                starts.append((number, name))
                break

    functions = []
    for i, (start, name) in enumerate(starts):
        end = starts[i + 1][0] - 1 if i + 1 < len(starts) else len(lines)
        functions.append(FunctionInfo(name=name, start_line=start, end_line=max(end, start)))
    return functions


def _chunk(base_name: str, index: int, functions: List[FunctionInfo]) -> SplitChunk:
    if len(functions) == 1:
        name = f"{base_name}_{functions[0].name.lower()}"
    else:
        name = f"{base_name}_part{index}"
    return SplitChunk(
        suggested_name=name,
        functions=[f.name for f in functions],
        start_line=functions[0].start_line,
        end_line=functions[-1].end_line,
        line_count=sum(f.line_count for f in functions),
    )


def generate_chunks(path: str, functions: List[FunctionInfo], limit: int) -> List[SplitChunk]:
    """Pack functions into chunks of at most ``limit`` lines.

    A function larger than the limit gets a chunk of its own. Returns an
    empty list when everything would fit in a single chunk.
    """
    if not functions or limit <= 0:
        return []
    base_name = PurePosixPath(path).stem or "file"

    chunks: List[SplitChunk] = []
    current: List[FunctionInfo] = []
    size = 0
    for func in functions:
        if current and size + func.line_count > limit:
            chunks.append(_chunk(base_name, len(chunks) + 1, current))
            current, size = [], 0
        current.append(func)
        size += func.line_count
        if func.line_count > limit:
            chunks.append(_chunk(base_name, len(chunks) + 1, current))
            current, size = [], 0
    if current:
        chunks.append(_chunk(base_name, len(chunks) + 1, current))

    return chunks if len(chunks) > 1 else []


def suggest_split(path: str, lines: Sequence[str], language: Optional[Language], limit: int) -> List[str]:
    """Human-readable split suggestions, empty when none apply."""
    if language is None:
        return []
    functions = find_functions(lines, language)
    return [chunk.describe() for chunk in generate_chunks(path, functions, limit)]
