"""Language registry: maps file extensions to comment syntax descriptors.

Adding a new built-in language:
  1. Add a Language entry to BUILTIN_LANGUAGES below.
  2. That's it. The registry indexes it by every listed extension.

Users can define further languages under ``[languages.<name>]`` in the
config; a user language that claims a built-in extension replaces it.
"""

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class BlockComment:
    """A block comment delimiter pair.

    ``long_bracket`` marks Lua-style openers whose level (number of ``=``
    between the brackets) must be repeated by the closer: ``--[==[`` only
    ends at ``]==]``.
    """

    start: str
    end: str
    nesting: bool = False
    at_line_start: bool = False
    long_bracket: bool = False


@dataclass(frozen=True)
class CommentSyntax:
    single_line: Tuple[str, ...] = ()
    blocks: Tuple[BlockComment, ...] = ()


@dataclass(frozen=True)
class Language:
    """Everything the line classifier needs to know about a language."""

    name: str
    extensions: Tuple[str, ...]
    syntax: CommentSyntax

    # Delimiters of ordinary string literals. They close on the same line.
    string_quotes: Tuple[str, ...] = ('"', "'")

    # Delimiters whose literals may span lines (JS template strings, Go raw strings).
    multiline_quotes: Tuple[str, ...] = ()

    # Backslashes inside multi-line literals are literal (Go backticks).
    raw_multiline: bool = False

    # ``'`` opens a character literal ('a', '\n') rather than a string.
    char_literals: bool = False

    # Rust-like raw strings: r"...", r#"..."#, br##"..."##
    raw_strings: bool = False

    # Function detection regexes used for split suggestions. Group 1 is the name.
    function_patterns: Tuple[str, ...] = field(default_factory=tuple)

    # Exact file names (lowercase) claimed by extension-less languages.
    filenames: Tuple[str, ...] = ()


# ── Re-usable building blocks ──────────────────────────────────────

_C_LINE = ("//",)
_C_BLOCK = BlockComment("/*", "*/")
_C_BLOCK_NESTED = BlockComment("/*", "*/", nesting=True)
_HTML_BLOCK = BlockComment("<!--", "-->")
_HASH = ("#",)

_C_STYLE = CommentSyntax(single_line=_C_LINE, blocks=(_C_BLOCK,))
_C_STYLE_NESTED = CommentSyntax(single_line=("///", "//"), blocks=(_C_BLOCK_NESTED,))

_C_FAMILY_FUNCTION = (
    r"^\s*(?:[A-Za-z_][\w:<>,\[\]*&]*\s+)+\**&?([A-Za-z_]\w*)\s*\([^;]*$",
)
_JS_FUNCTIONS = (
    r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)",
    r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?(?:\([^)]*\)|\w+)\s*=>",
    r"^\s*(?:(?:public|private|protected|static|async|readonly)\s+)*(\w+)\s*\([^)]*\)\s*(?::\s*[\w<>\[\]|, ]+)?\s*\{\s*$",
)

BUILTIN_LANGUAGES: Tuple[Language, ...] = (
    Language(
        name="Rust",
        extensions=("rs",),
        syntax=CommentSyntax(single_line=("///", "//!", "//"), blocks=(_C_BLOCK_NESTED,)),
        string_quotes=('"',),
        char_literals=True,
        raw_strings=True,
        function_patterns=(
            r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?(?:extern\s+\"\w+\"\s+)?fn\s+(\w+)",
        ),
    ),
    Language(
        name="C",
        extensions=("c", "h"),
        syntax=_C_STYLE,
        string_quotes=('"',),
        char_literals=True,
        function_patterns=_C_FAMILY_FUNCTION,
    ),
    Language(
        name="C++",
        extensions=("cpp", "hpp", "cc", "cxx", "hxx", "hh"),
        syntax=_C_STYLE,
        string_quotes=('"',),
        char_literals=True,
        function_patterns=_C_FAMILY_FUNCTION,
    ),
    Language(
        name="C#",
        extensions=("cs",),
        syntax=CommentSyntax(single_line=("///", "//"), blocks=(_C_BLOCK,)),
        string_quotes=('"',),
        char_literals=True,
        function_patterns=_C_FAMILY_FUNCTION,
    ),
    Language(
        name="Go",
        extensions=("go",),
        syntax=_C_STYLE,
        string_quotes=('"',),
        multiline_quotes=("`",),
        raw_multiline=True,
        char_literals=True,
        function_patterns=(r"^func\s+(?:\([^)]*\)\s*)?(\w+)",),
    ),
    Language(
        name="Python",
        extensions=("py", "pyi"),
        syntax=CommentSyntax(
            single_line=_HASH,
            blocks=(BlockComment('"""', '"""'), BlockComment("'''", "'''")),
        ),
        function_patterns=(r"^\s*(?:async\s+)?def\s+(\w+)", r"^\s*class\s+(\w+)"),
    ),
    Language(
        name="JavaScript",
        extensions=("js", "mjs", "cjs", "jsx"),
        syntax=_C_STYLE,
        multiline_quotes=("`",),
        function_patterns=_JS_FUNCTIONS,
    ),
    Language(
        name="TypeScript",
        extensions=("ts", "mts", "cts", "tsx"),
        syntax=_C_STYLE,
        multiline_quotes=("`",),
        function_patterns=_JS_FUNCTIONS,
    ),
    Language(
        name="Java",
        extensions=("java",),
        syntax=_C_STYLE,
        string_quotes=('"',),
        char_literals=True,
        function_patterns=_C_FAMILY_FUNCTION,
    ),
    Language(
        name="Kotlin",
        extensions=("kt", "kts"),
        syntax=CommentSyntax(single_line=_C_LINE, blocks=(_C_BLOCK_NESTED,)),
        string_quotes=('"',),
        char_literals=True,
        function_patterns=(r"^\s*(?:\w+\s+)*fun\s+(?:<[^>]*>\s*)?(?:[\w.]+\.)?(\w+)",),
    ),
    Language(
        name="Scala",
        extensions=("scala", "sc"),
        syntax=CommentSyntax(single_line=_C_LINE, blocks=(_C_BLOCK_NESTED,)),
        string_quotes=('"',),
        char_literals=True,
        function_patterns=(r"^\s*(?:\w+\s+)*def\s+(\w+)",),
    ),
    Language(
        name="Swift",
        extensions=("swift",),
        syntax=_C_STYLE_NESTED,
        string_quotes=('"',),
        function_patterns=(r"^\s*(?:@\w+\s+)*(?:\w+\s+)*func\s+(\w+)",),
    ),
    Language(
        name="Dart",
        extensions=("dart",),
        syntax=CommentSyntax(single_line=("///", "//"), blocks=(_C_BLOCK_NESTED,)),
        function_patterns=_C_FAMILY_FUNCTION,
    ),
    Language(
        name="Ruby",
        extensions=("rb", "rake"),
        syntax=CommentSyntax(
            single_line=_HASH,
            blocks=(BlockComment("=begin", "=end", at_line_start=True),),
        ),
        function_patterns=(r"^\s*def\s+(?:self\.)?(\w+[?!=]?)",),
    ),
    Language(
        name="Lua",
        extensions=("lua",),
        syntax=CommentSyntax(
            single_line=("--",),
            blocks=(BlockComment("--[[", "]]", long_bracket=True),),
        ),
        function_patterns=(r"^\s*(?:local\s+)?function\s+([\w.:]+)",),
    ),
    Language(
        name="Haskell",
        extensions=("hs",),
        syntax=CommentSyntax(single_line=("--",), blocks=(BlockComment("{-", "-}", nesting=True),)),
        string_quotes=('"',),
        function_patterns=(r"^(\w+)\s*::",),
    ),
    Language(
        name="PHP",
        extensions=("php",),
        syntax=CommentSyntax(single_line=("//", "#"), blocks=(_C_BLOCK,)),
        function_patterns=(
            r"^\s*(?:(?:public|private|protected|static|abstract|final)\s+)*function\s+(\w+)",
        ),
    ),
    Language(
        name="Shell",
        extensions=("sh", "bash", "zsh"),
        syntax=CommentSyntax(single_line=_HASH),
        function_patterns=(r"^\s*(?:function\s+)?([\w-]+)\s*\(\)",),
    ),
    Language(
        name="SQL",
        extensions=("sql",),
        syntax=CommentSyntax(single_line=("--",), blocks=(_C_BLOCK,)),
    ),
    Language(
        name="HTML",
        extensions=("html", "htm"),
        syntax=CommentSyntax(blocks=(_HTML_BLOCK,)),
        string_quotes=(),
    ),
    Language(
        name="CSS",
        extensions=("css",),
        syntax=CommentSyntax(blocks=(_C_BLOCK,)),
    ),
    Language(
        name="SCSS",
        extensions=("scss", "less"),
        syntax=_C_STYLE,
    ),
    Language(
        name="YAML",
        extensions=("yaml", "yml"),
        syntax=CommentSyntax(single_line=_HASH),
    ),
    Language(
        name="TOML",
        extensions=("toml",),
        syntax=CommentSyntax(single_line=_HASH),
    ),
    Language(
        name="Dockerfile",
        extensions=("dockerfile",),
        syntax=CommentSyntax(single_line=_HASH),
        filenames=("dockerfile", "containerfile"),
    ),
    Language(
        name="Makefile",
        extensions=("mk",),
        syntax=CommentSyntax(single_line=_HASH),
        filenames=("makefile", "gnumakefile"),
    ),
    Language(
        name="Markdown",
        extensions=("md", "markdown"),
        syntax=CommentSyntax(blocks=(_HTML_BLOCK,)),
        string_quotes=(),
    ),
)

# Used for files a rule or override pulls in that no language claims.
PLAIN_TEXT = Language(name="Text", extensions=(), syntax=CommentSyntax(), string_quotes=())

# (extension, replaced language, replacing language)
LanguageOverride = Tuple[str, str, str]


def normalize_extension(ext: str) -> str:
    return ext.strip().lstrip(".").lower()


def extension_of(path) -> Optional[str]:
    suffix = PurePath(str(path)).suffix
    if not suffix or suffix == ".":
        return None
    return normalize_extension(suffix)


def custom_language(
    name: str,
    extensions: Sequence[str],
    single_line_comments: Sequence[str] = (),
    multi_line_comments: Sequence[Sequence[str]] = (),
) -> Language:
    """Build a Language from the ``[languages.<name>]`` config shape."""
    blocks = tuple(BlockComment(start, end) for start, end in multi_line_comments)
    return Language(
        name=name,
        extensions=tuple(normalize_extension(e) for e in extensions),
        syntax=CommentSyntax(single_line=tuple(single_line_comments), blocks=blocks),
    )


class LanguageRegistry:
    """Lookup from lowercase extension to Language. Immutable once the run starts."""

    def __init__(self, languages: Iterable[Language] = BUILTIN_LANGUAGES):
        self._by_ext: Dict[str, Language] = {}
        self._by_filename: Dict[str, Language] = {}
        for language in languages:
            for ext in language.extensions:
                self._by_ext[normalize_extension(ext)] = language
            for filename in language.filenames:
                self._by_filename[filename.lower()] = language

    def register(self, language: Language) -> List[LanguageOverride]:
        """Add a language; return the extensions it took over from another language."""
        replaced: List[LanguageOverride] = []
        for ext in language.extensions:
            key = normalize_extension(ext)
            previous = self._by_ext.get(key)
            if previous is not None and previous.name != language.name:
                replaced.append((key, previous.name, language.name))
            self._by_ext[key] = language
        return replaced

    @classmethod
    def with_custom(cls, custom: Iterable[Language]) -> Tuple["LanguageRegistry", List[LanguageOverride]]:
        registry = cls()
        overrides: List[LanguageOverride] = []
        for language in custom:
            overrides.extend(registry.register(language))
        for ext, old, new in overrides:
            logger.debug(f"Extension .{ext} reassigned from {old} to {new}")
        return registry, overrides

    def get(self, ext: str) -> Optional[Language]:
        return self._by_ext.get(normalize_extension(ext))

    def for_path(self, path) -> Optional[Language]:
        ext = extension_of(path)
        if ext is not None and ext in self._by_ext:
            return self._by_ext[ext]
        return self._by_filename.get(PurePath(str(path)).name.lower())

    def extensions(self) -> List[str]:
        return sorted(self._by_ext)

    def names(self) -> List[str]:
        return sorted({lang.name for lang in self._by_ext.values()})
