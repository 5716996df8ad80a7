"""Exception hierarchy for sloc-guard."""

from .base import SlocGuardError, render_error
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPatternError,
    RemoteFetchError,
    RuleError,
    TomlParseError,
)
from .io import BaselineError, FileAccessError, GitError

__all__ = [
    "SlocGuardError",
    "render_error",
    "ConfigurationError",
    "InvalidConfigError",
    "InvalidPatternError",
    "RemoteFetchError",
    "RuleError",
    "TomlParseError",
    "BaselineError",
    "FileAccessError",
    "GitError",
]
