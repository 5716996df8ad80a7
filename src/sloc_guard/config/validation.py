"""Semantic validation of a parsed configuration.

Parsing guarantees field names and types; this module checks ranges,
cross-field constraints and that every glob and regex compiles. Errors
name the offending key the way it appears in the TOML file, e.g.
``structure.rules[2].warn_files_at``.
"""

import re
from typing import Optional

from ..exceptions import InvalidConfigError, InvalidPatternError, RuleError
from ..matching import compile_glob
from .expires import parse_expires
from .models import (
    BREAKDOWN_BY,
    CONFIG_VERSION,
    RATCHET_MODES,
    REPORT_SECTIONS,
    SIBLING_SEVERITIES,
    UNLIMITED,
    Config,
)


def validate_config(config: Config) -> None:
    """Raise a ConfigurationError subclass for the first problem found."""
    if str(config.version) != CONFIG_VERSION:
        raise InvalidConfigError("version", config.version, f'expected "{CONFIG_VERSION}"')
    _validate_patterns("scanner.exclude", config.scanner.exclude)
    _validate_content(config)
    _validate_structure(config)
    _validate_misc(config)


def _validate_patterns(key: str, patterns) -> None:
    for pattern in patterns:
        try:
            compile_glob(pattern)
        except InvalidPatternError as e:
            raise InvalidPatternError(pattern, f"{key}: {e.reason}")


def _check_threshold(key: str, value: Optional[float]) -> None:
    if value is not None and not 0.0 <= value <= 1.0:
        raise RuleError(key, value, "must be between 0.0 and 1.0")


def _check_lines(key: str, value: Optional[int]) -> None:
    if value is not None and value < 0:
        raise RuleError(key, value, "must be non-negative")


def _check_limit(key: str, value: Optional[int]) -> None:
    if value is not None and value < UNLIMITED:
        raise RuleError(key, value, "must be non-negative or -1 for unlimited")


def _check_warn_at(prefix: str, name: str, warn_at: Optional[int], limit: Optional[int], limit_name: str) -> None:
    if warn_at is None:
        return
    if warn_at < 0:
        raise RuleError(f"{prefix}.{name}", warn_at, "must be non-negative")
    if limit is not None and limit != UNLIMITED and warn_at >= limit:
        raise RuleError(
            f"{prefix}.{name}", warn_at, f"must be less than {prefix}.{limit_name} ({limit})"
        )


def _validate_content(config: Config) -> None:
    content = config.content
    _check_lines("content.max_lines", content.max_lines)
    _check_threshold("content.warn_threshold", content.warn_threshold)
    _check_warn_at("content", "warn_at", content.warn_at, content.max_lines, "max_lines")
    _validate_patterns("content.exclude", content.exclude)

    for i, rule in enumerate(content.rules):
        key = f"content.rules[{i}]"
        _validate_patterns(f"{key}.pattern", [rule.pattern])
        _check_lines(f"{key}.max_lines", rule.max_lines)
        _check_threshold(f"{key}.warn_threshold", rule.warn_threshold)
        limit = rule.max_lines if rule.max_lines is not None else content.max_lines
        _check_warn_at(key, "warn_at", rule.warn_at, limit, "max_lines")
        if rule.expires:
            parse_expires(rule.expires, f"{key}.expires")

    for i, override in enumerate(content.overrides):
        key = f"content.overrides[{i}]"
        if not override.path.strip().strip("/\\"):
            raise RuleError(f"{key}.path", override.path, "must not be empty")
        _check_lines(f"{key}.max_lines", override.max_lines)
        if not override.reason.strip():
            raise RuleError(f"{key}.reason", override.reason, "overrides must explain themselves")
        if override.expires:
            parse_expires(override.expires, f"{key}.expires")


def _validate_limits(prefix: str, item) -> None:
    _check_limit(f"{prefix}.max_files", item.max_files)
    _check_limit(f"{prefix}.max_dirs", item.max_dirs)
    _check_limit(f"{prefix}.max_depth", item.max_depth)
    _check_threshold(f"{prefix}.warn_threshold", item.warn_threshold)
    _check_threshold(f"{prefix}.warn_files_threshold", item.warn_files_threshold)
    _check_threshold(f"{prefix}.warn_dirs_threshold", item.warn_dirs_threshold)
    _check_warn_at(prefix, "warn_files_at", item.warn_files_at, item.max_files, "max_files")
    _check_warn_at(prefix, "warn_dirs_at", item.warn_dirs_at, item.max_dirs, "max_dirs")


def _validate_regex(key: str, pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(pattern, f"{key}: {e}")


_ALLOW_FIELDS = ("allow_extensions", "allow_patterns", "allow_files", "allow_dirs")
_DENY_FIELDS = ("deny_extensions", "deny_patterns", "deny_files", "deny_dirs")


def _check_allow_or_deny(key: str, item) -> None:
    """One level uses allow-lists or deny-lists, never both."""
    allow = [name for name in _ALLOW_FIELDS if getattr(item, name, None)]
    deny = [name for name in _DENY_FIELDS if getattr(item, name, None)]
    if allow and deny:
        raise RuleError(
            key, f"{allow[0]} + {deny[0]}", "cannot mix allow_* and deny_* fields; use one mode per level"
        )


def _validate_structure(config: Config) -> None:
    structure = config.structure
    _validate_limits("structure", structure)
    for name in ("count_exclude", "allow_files", "allow_dirs", "deny_patterns", "deny_files", "deny_dirs"):
        _validate_patterns(f"structure.{name}", getattr(structure, name))
    _check_allow_or_deny("structure", structure)

    for i, rule in enumerate(structure.rules):
        key = f"structure.rules[{i}]"
        _validate_patterns(f"{key}.scope", [rule.scope])
        _validate_limits(key, rule)
        for name in (
            "allow_patterns",
            "allow_files",
            "allow_dirs",
            "deny_patterns",
            "deny_files",
            "deny_dirs",
        ):
            _validate_patterns(f"{key}.{name}", getattr(rule, name))
        _check_allow_or_deny(key, rule)
        if rule.file_naming_pattern is not None:
            _validate_regex(f"{key}.file_naming_pattern", rule.file_naming_pattern)
        for j, sibling in enumerate(rule.siblings):
            skey = f"{key}.siblings[{j}]"
            if sibling.severity not in SIBLING_SEVERITIES:
                raise RuleError(f"{skey}.severity", sibling.severity, "expected 'error' or 'warn'")
            if sibling.is_group:
                if sibling.match is not None or sibling.require:
                    raise RuleError(skey, sibling.group, "use either group or match/require")
                if len(sibling.group) < 2:
                    raise RuleError(f"{skey}.group", sibling.group, "needs at least two patterns")
                _validate_patterns(f"{skey}.group", sibling.group)
            else:
                if not sibling.match or not sibling.require:
                    raise RuleError(skey, sibling.match, "directed siblings need match and require")
                _validate_patterns(f"{skey}.match", [sibling.match])
        if rule.expires:
            parse_expires(rule.expires, f"{key}.expires")

    for i, override in enumerate(structure.overrides):
        key = f"structure.overrides[{i}]"
        if not override.path.strip().strip("/\\"):
            raise RuleError(f"{key}.path", override.path, "must not be empty")
        _check_limit(f"{key}.max_files", override.max_files)
        _check_limit(f"{key}.max_dirs", override.max_dirs)
        _check_limit(f"{key}.max_depth", override.max_depth)
        if not override.reason.strip():
            raise RuleError(f"{key}.reason", override.reason, "overrides must explain themselves")
        if override.expires:
            parse_expires(override.expires, f"{key}.expires")


def _validate_misc(config: Config) -> None:
    if config.baseline.ratchet not in RATCHET_MODES:
        raise InvalidConfigError(
            "baseline.ratchet", config.baseline.ratchet, f"expected one of {', '.join(RATCHET_MODES)}"
        )
    if config.trend.max_entries < 1:
        raise InvalidConfigError("trend.max_entries", config.trend.max_entries, "must be at least 1")

    report = config.stats.report
    for section in report.exclude:
        if section.lower() not in REPORT_SECTIONS:
            raise InvalidConfigError(
                "stats.report.exclude", section, f"valid sections: {', '.join(REPORT_SECTIONS)}"
            )
    if report.breakdown_by.lower() not in BREAKDOWN_BY:
        raise InvalidConfigError("stats.report.breakdown_by", report.breakdown_by, "expected lang or dir")
    if report.top_count < 1:
        raise InvalidConfigError("stats.report.top_count", report.top_count, "must be at least 1")

    for name, language in config.languages.items():
        key = f"languages.{name}"
        if not language.extensions:
            raise InvalidConfigError(f"{key}.extensions", [], "at least one extension is required")
        for pair in language.multi_line_comments:
            if len(pair) != 2 or not all(pair):
                raise InvalidConfigError(
                    f"{key}.multi_line_comments", pair, "expected [start, end] marker pairs"
                )
