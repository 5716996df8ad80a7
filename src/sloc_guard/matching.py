"""Glob compilation and path helpers shared by the scanner and rule resolvers.

Patterns follow the conventional glob dialect used in config files:

- ``*`` matches any run of characters (across ``/`` unless the pattern is
  compiled with ``literal_separator=True``, as gitignore patterns are)
- ``?`` matches a single character
- ``**`` matches any number of path components, including none
- ``[abc]`` / ``[!abc]`` character classes
- ``{a,b}`` alternation

Paths are always compared in normalized form: forward slashes, no leading
``./`` and no trailing slash.
"""

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence

from .exceptions import InvalidPatternError

GLOB_CHARS = frozenset("*?[{")


def normalize_path(path) -> str:
    """Fold separators to ``/`` and strip ``./`` prefixes and trailing slashes."""
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    while "//" in text:
        text = text.replace("//", "/")
    if len(text) > 1:
        text = text.rstrip("/")
    if text == ".":
        return ""
    return text


def path_components(path) -> List[str]:
    return [c for c in normalize_path(path).split("/") if c and c != "."]


def suffix_matches(path, suffix) -> bool:
    """True when ``suffix`` names the trailing whole components of ``path``.

    ``src/lib.rs`` matches ``any/prefix/src/lib.rs`` but not ``src/my_lib.rs``.
    An empty suffix never matches.
    """
    wanted = path_components(suffix)
    if not wanted:
        return False
    have = path_components(path)
    if len(wanted) > len(have):
        return False
    return have[len(have) - len(wanted):] == wanted


def has_glob_chars(text: str) -> bool:
    return any(ch in GLOB_CHARS for ch in text)


def pattern_base_depth(pattern: str) -> int:
    """Number of leading literal components before the first wildcard component."""
    depth = 0
    for component in path_components(pattern):
        if has_glob_chars(component):
            break
        depth += 1
    return depth


def _translate(pattern: str, literal_separator: bool) -> str:
    star = "[^/]*" if literal_separator else ".*"
    single = "[^/]" if literal_separator else "."
    out: List[str] = []
    i = 0
    n = len(pattern)
    in_alternation = False

    while i < n:
        ch = pattern[i]
        if ch == "*":
            if pattern.startswith("**", i):
                at_start = i == 0 or pattern[i - 1] == "/"
                j = i + 2
                if at_start and j < n and pattern[j] == "/":
                    # "**/" matches zero or more leading directories
                    out.append("(?:.*/)?")
                    i = j + 1
                    continue
                if at_start and j == n:
                    out.append(".*")
                    i = j
                    continue
                out.append(".*")
                i = j
                continue
            out.append(star)
        elif ch == "?":
            out.append(single)
        elif ch == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise InvalidPatternError(pattern, "unclosed character class")
            body = pattern[i + 1:j]
            if body[:1] in ("!", "^"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\") + "]")
            i = j
        elif ch == "{":
            if in_alternation:
                raise InvalidPatternError(pattern, "nested alternation is not supported")
            in_alternation = True
            out.append("(?:")
        elif ch == "}":
            if not in_alternation:
                raise InvalidPatternError(pattern, "unopened alternation")
            in_alternation = False
            out.append(")")
        elif ch == "," and in_alternation:
            out.append("|")
        elif ch == "\\":
            i += 1
            if i >= n:
                raise InvalidPatternError(pattern, "dangling escape")
            out.append(re.escape(pattern[i]))
        else:
            out.append(re.escape(ch))
        i += 1

    if in_alternation:
        raise InvalidPatternError(pattern, "unclosed alternation")
    return "".join(out)


@lru_cache(maxsize=1024)
def compile_glob(pattern: str, literal_separator: bool = False) -> "re.Pattern[str]":
    """Compile a glob to an anchored regex. Raises InvalidPatternError."""
    normalized = normalize_path(pattern)
    try:
        return re.compile(r"\A" + _translate(normalized, literal_separator) + r"\Z", re.DOTALL)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e))


class Glob:
    """A single compiled glob remembering its source text."""

    __slots__ = ("pattern", "_regex")

    def __init__(self, pattern: str, literal_separator: bool = False):
        self.pattern = pattern
        self._regex = compile_glob(pattern, literal_separator)

    def matches(self, path) -> bool:
        return self._regex.match(normalize_path(path)) is not None

    def matches_dir(self, path) -> bool:
        """Match a directory by its own path or as the prefix of ``dir/**``."""
        normalized = normalize_path(path)
        return bool(self._regex.match(normalized) or self._regex.match(normalized + "/"))

    def __repr__(self) -> str:
        return f"Glob({self.pattern!r})"


class GlobSet:
    """An ordered collection of globs tested together."""

    def __init__(self, patterns: Iterable[str] = (), literal_separator: bool = False):
        self.globs = [Glob(p, literal_separator) for p in patterns]

    def __bool__(self) -> bool:
        return bool(self.globs)

    def __len__(self) -> int:
        return len(self.globs)

    def is_match(self, path) -> bool:
        normalized = normalize_path(path)
        return any(g._regex.match(normalized) for g in self.globs)

    def is_dir_match(self, path) -> bool:
        return any(g.matches_dir(path) for g in self.globs)

    def first_match(self, path) -> Optional[str]:
        normalized = normalize_path(path)
        for g in self.globs:
            if g._regex.match(normalized):
                return g.pattern
        return None


def validate_patterns(patterns: Sequence[str]) -> None:
    for pattern in patterns:
        compile_glob(pattern)
