"""Configuration exceptions: parsing, validation, patterns, remote configs."""

from pathlib import Path
from typing import Any

from .base import SlocGuardError


class ConfigurationError(SlocGuardError):
    """Base class for configuration-related errors."""

    error_type = "Config"
    suggestion = "Check the config file format and value ranges in .sloc-guard.toml"


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class RuleError(InvalidConfigError):
    """Raised when a content or structure rule fails semantic validation."""


class InvalidPatternError(ConfigurationError):
    """Raised when a glob or regex pattern cannot be compiled."""

    error_type = "InvalidPattern"
    suggestion = (
        "Check glob pattern syntax: use '*' for wildcards, '**' for recursive matching"
    )

    def __init__(self, pattern: str, reason: str):
        super().__init__(
            f"Invalid pattern: {pattern}", details={"pattern": pattern, "reason": reason}
        )
        self.pattern = pattern
        self.reason = reason


class TomlParseError(ConfigurationError):
    """Raised when a config file is not valid TOML."""

    error_type = "TomlParse"
    suggestion = "Check TOML syntax: strings need quotes, arrays use [ ]"

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Failed to parse config file: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class RemoteFetchError(ConfigurationError):
    """Raised when an ``extends`` URL cannot be fetched."""

    error_type = "RemoteConfig"
    suggestion = "Check network connectivity and that the URL uses http:// or https://"

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Failed to fetch remote config: {url}", details={"url": url, "reason": reason}
        )
        self.url = url
        self.reason = reason
