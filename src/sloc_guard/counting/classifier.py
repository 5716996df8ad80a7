"""Streaming line classifier.

Each physical line is classified as code, comment, blank or ignored with a
single left-to-right walk that tracks just enough lexical state to keep
comment markers inside string and character literals from counting:

- block comments, optionally nested (Rust, Swift) or anchored at the line
  start (Ruby ``=begin``), and Lua long brackets with levels
- ordinary strings with backslash escapes, closing on the same line
- multi-line literals (JS template strings, Go backtick strings)
- Rust raw strings ``r#"..."#`` which close only on ``"`` plus the same
  number of hashes
- character literals, told apart from Rust lifetimes by shape

A line holding any code is code even if a comment follows on it.
"""

import codecs
import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from itertools import chain, islice
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Tuple, Union

from ..languages import Language
from .directives import FILE_DIRECTIVE_WINDOW, Directive, DirectiveKind, parse_directive
from .models import IgnoredFile, LineStats

CHUNK_SIZE = 8192

_RAW_STRING = re.compile(r'b?r(#*)"')
_IDENT_CHAR = re.compile(r"\w")

CountResult = Union[LineStats, IgnoredFile]


class LineKind(str, Enum):
    CODE = "code"
    COMMENT = "comment"
    BLANK = "blank"
    IGNORED = "ignored"


@dataclass
class _OpenBlock:
    start: str
    end: str
    nesting: bool
    at_line_start: bool
    depth: int = 1


@dataclass
class _OpenString:
    closer: str
    escapes: bool
    multiline: bool


class LineClassifier:
    """Per-file state machine. Feed lines in order; read ``stats`` at the end."""

    def __init__(self, language: Language):
        self.language = language
        self._single = tuple(sorted(language.syntax.single_line, key=len, reverse=True))
        self._blocks = []
        for block in language.syntax.blocks:
            long_bracket = None
            if block.long_bracket:
                long_bracket = re.compile(re.escape(block.start[:-2]) + r"\[(=*)\[")
            self._blocks.append((block, long_bracket))
        self._block: Optional[_OpenBlock] = None
        self._string: Optional[_OpenString] = None
        self._ignore_next = 0
        self._in_ignore_range = False
        self.stats = LineStats()

    @property
    def at_rest(self) -> bool:
        """True when no block comment or multi-line literal is open."""
        return self._block is None and self._string is None

    def directive_on(self, line: str) -> Optional[Directive]:
        """Directive carried by ``line`` if it is a whole-line single-line comment."""
        if not self.at_rest:
            return None
        trimmed = line.lstrip()
        if self._match_block(trimmed, 0, 0) is not None:
            return None
        for marker in self._single:
            if trimmed.startswith(marker):
                body = trimmed[len(marker):].lstrip(marker[-1] + "!")
                return parse_directive(body)
        return None

    def feed(self, line: str) -> LineKind:
        by_next = self._ignore_next > 0
        by_range = self._in_ignore_range
        if by_next:
            self._ignore_next -= 1

        directive = self.directive_on(line)
        kind = self._scan(line)

        if directive is not None:
            if directive.kind is DirectiveKind.IGNORE_END and self._in_ignore_range:
                self._in_ignore_range = False
                by_range = False
            elif not (by_next or by_range):
                if directive.kind is DirectiveKind.IGNORE_START:
                    self._in_ignore_range = True
                elif directive.kind is DirectiveKind.IGNORE_NEXT:
                    self._ignore_next = directive.count

        if by_next or by_range:
            kind = LineKind.IGNORED

        if kind is LineKind.CODE:
            self.stats.code += 1
        elif kind is LineKind.COMMENT:
            self.stats.comment += 1
        elif kind is LineKind.BLANK:
            self.stats.blank += 1
        else:
            self.stats.ignored += 1
        return kind

    # -- line walk --

    def _scan(self, line: str) -> LineKind:
        code = self._string is not None
        comment = self._block is not None
        first = len(line) - len(line.lstrip())
        i, n = 0, len(line)

        while i < n:
            if self._block is not None:
                comment = True
                i = self._close_block(line, i, first)
                continue
            if self._string is not None:
                code = True
                i = self._close_string(line, i)
                continue
            if line[i].isspace():
                i += 1
                continue
            opened = self._match_block(line, i, first)
            if opened is not None:
                self._block, i = opened
                comment = True
                continue
            if any(line.startswith(marker, i) for marker in self._single):
                comment = True
                break
            code = True
            i = self._consume_code(line, i)

        if self._string is not None and not self._string.multiline:
            self._string = None

        if code:
            return LineKind.CODE
        if comment:
            return LineKind.COMMENT
        return LineKind.BLANK

    def _match_block(self, line: str, i: int, first: int) -> Optional[Tuple[_OpenBlock, int]]:
        for block, long_bracket in self._blocks:
            if block.at_line_start and i != first:
                continue
            if long_bracket is not None:
                m = long_bracket.match(line, i)
                if m:
                    level = m.group(1)
                    return _OpenBlock(m.group(0), "]" + level + "]", False, False), m.end()
                continue
            if line.startswith(block.start, i):
                if block.at_line_start and not _stands_alone(line, i + len(block.start)):
                    continue
                opened = _OpenBlock(block.start, block.end, block.nesting, block.at_line_start)
                return opened, i + len(block.start)
        return None

    def _close_block(self, line: str, i: int, first: int) -> int:
        block = self._block
        n = len(line)
        if block.at_line_start:
            # =end closes only at the line start; the rest of that line is still comment
            closes = i <= first and line.startswith(block.end, first)
            if closes and _stands_alone(line, first + len(block.end)):
                self._block = None
            return n

        j = i
        while j < n:
            if line.startswith(block.end, j):
                block.depth -= 1
                j += len(block.end)
                if block.depth == 0:
                    self._block = None
                    return j
                continue
            if block.nesting and line.startswith(block.start, j):
                block.depth += 1
                j += len(block.start)
                continue
            j += 1
        return n

    def _close_string(self, line: str, i: int) -> int:
        literal = self._string
        n = len(line)
        j = i
        while j < n:
            if literal.escapes and line[j] == "\\":
                j += 2
                continue
            if line.startswith(literal.closer, j):
                self._string = None
                return j + len(literal.closer)
            j += 1
        return n

    def _consume_code(self, line: str, i: int) -> int:
        language = self.language
        ch = line[i]

        if language.raw_strings and ch in "br":
            m = _RAW_STRING.match(line, i)
            if m and (i == 0 or not _IDENT_CHAR.match(line[i - 1])):
                self._string = _OpenString('"' + m.group(1), escapes=False, multiline=True)
                return m.end()

        if ch in language.multiline_quotes:
            self._string = _OpenString(ch, escapes=not language.raw_multiline, multiline=True)
            return i + 1

        if ch == "'" and language.char_literals:
            return _skip_char_literal(line, i)

        if ch in language.string_quotes:
            self._string = _OpenString(ch, escapes=True, multiline=False)
            return i + 1

        return i + 1


def _stands_alone(line: str, end: int) -> bool:
    """A line-start marker must be followed by whitespace or the line end."""
    return end == len(line) or line[end].isspace()


def _skip_char_literal(line: str, i: int) -> int:
    """Skip 'x' or '\\n'; anything else (a Rust lifetime) is a lone quote."""
    n = len(line)
    if i + 1 < n and line[i + 1] == "\\":
        close = line.find("'", i + 3)
        return n if close == -1 else close + 1
    if i + 2 < n and line[i + 2] == "'":
        return i + 3
    return i + 1


# -- line sources --


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` / ``\\r\\n``; a trailing newline does not start a new line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [_strip_cr(line) for line in lines]


def iter_stream_lines(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[str]:
    """Yield decoded lines from a binary stream, replacing invalid UTF-8."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        pending += decoder.decode(chunk)
        *complete, pending = pending.split("\n")
        for line in complete:
            yield _strip_cr(line)
    pending += decoder.decode(b"", final=True)
    if pending:
        yield _strip_cr(pending)


def has_file_directive(head: Iterable[str], language: Language) -> bool:
    """True if a single-line comment in the first ten lines says ``ignore-file``."""
    head_classifier = LineClassifier(language)
    for line in islice(head, FILE_DIRECTIVE_WINDOW):
        directive = head_classifier.directive_on(line)
        if directive is not None and directive.kind is DirectiveKind.IGNORE_FILE:
            return True
        head_classifier.feed(line)
    return False


def count_lines(lines: Iterable[str], language: Language) -> CountResult:
    it = iter(lines)
    head = list(islice(it, FILE_DIRECTIVE_WINDOW))
    if has_file_directive(head, language):
        return IgnoredFile(total=len(head) + sum(1 for _ in it))

    classifier = LineClassifier(language)
    for line in chain(head, it):
        classifier.feed(line)
    return classifier.stats


def count(source: Union[str, bytes], language: Language) -> CountResult:
    """Classify a whole in-memory source."""
    if isinstance(source, bytes):
        source = source.decode("utf-8", errors="replace")
    return count_lines(split_lines(source), language)


def count_stream(stream: BinaryIO, language: Language, chunk_size: int = CHUNK_SIZE) -> CountResult:
    """Classify a binary stream incrementally."""
    return count_lines(iter_stream_lines(stream, chunk_size), language)


class _HashingReader:
    """Binary reader that feeds every chunk it returns into a digest."""

    def __init__(self, stream: BinaryIO, digest):
        self._stream = stream
        self._digest = digest

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        self._digest.update(chunk)
        return chunk


def count_file(path: Path, language: Language) -> Tuple[CountResult, str]:
    """Classify a file and return its SHA-256 computed in the same pass.

    Raises OSError when the file cannot be read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        result = count_stream(_HashingReader(f, digest), language)
    return result, digest.hexdigest()
