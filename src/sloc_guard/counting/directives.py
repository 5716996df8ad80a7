"""Inline ``sloc-guard:`` directives recognized inside single-line comments.

    // sloc-guard:ignore-file         (first 10 lines only)
    // sloc-guard:ignore-next 3
    // sloc-guard:ignore-start
    // sloc-guard:ignore-end
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

PREFIX = "sloc-guard:"
FILE_DIRECTIVE_WINDOW = 10


class DirectiveKind(Enum):
    IGNORE_FILE = "ignore-file"
    IGNORE_NEXT = "ignore-next"
    IGNORE_START = "ignore-start"
    IGNORE_END = "ignore-end"


@dataclass(frozen=True)
class Directive:
    kind: DirectiveKind
    count: int = 0


def _keyword_follows(body: str, keyword: str) -> Optional[str]:
    """Return the text after ``keyword`` when it is a whole word, else None."""
    if not body.startswith(keyword):
        return None
    rest = body[len(keyword):]
    if rest and not rest[0].isspace():
        return None
    return rest


def parse_directive(body: str) -> Optional[Directive]:
    """Parse the text of a single-line comment with its marker removed.

    A malformed ``ignore-next`` (missing or non-numeric count) is not a
    directive; the line stays an ordinary comment.
    """
    body = body.strip()
    if not body.startswith(PREFIX):
        return None
    command = body[len(PREFIX):]

    if command.startswith(DirectiveKind.IGNORE_FILE.value):
        return Directive(DirectiveKind.IGNORE_FILE)

    rest = _keyword_follows(command, DirectiveKind.IGNORE_NEXT.value)
    if rest is not None:
        tokens = rest.split()
        if not tokens or not (tokens[0].isascii() and tokens[0].isdigit()):
            return None
        return Directive(DirectiveKind.IGNORE_NEXT, int(tokens[0]))

    if _keyword_follows(command, DirectiveKind.IGNORE_START.value) is not None:
        return Directive(DirectiveKind.IGNORE_START)
    if _keyword_follows(command, DirectiveKind.IGNORE_END.value) is not None:
        return Directive(DirectiveKind.IGNORE_END)
    return None
