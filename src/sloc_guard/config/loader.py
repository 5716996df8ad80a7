"""Configuration loading for sloc-guard.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined on the dataclasses in ``models``)
    2. Global config (~/.config/sloc-guard/config.toml)
    3. Project config (.sloc-guard.toml at the project root), or an
       explicit ``--config`` file instead
    4. Environment variables (SLOC_GUARD_* prefix)
    5. CLI overrides (dotted keys such as ``content.max_lines``)

Each file may name a parent with ``extends``: a built-in preset, a path
relative to the file, or an http(s) URL. Tables merge key by key over the
parent; arrays and scalars replace the parent's value outright.

Example:
    >>> config = load_config(overrides={"content.max_lines": 300})
    >>> config.content.max_lines
    300
"""

from __future__ import annotations

import os
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union, get_args, get_origin, get_type_hints

import requests

from ..exceptions import (
    ConfigurationError,
    InvalidConfigError,
    RemoteFetchError,
    TomlParseError,
)
from ..logging_config import get_logger
from .models import (
    CONFIG_FILENAME,
    Config,
    ContentConfig,
    ContentOverride,
    ContentRule,
    CustomLanguageConfig,
    SiblingRule,
    StructureConfig,
    StructureOverride,
    StructureRule,
)
from .presets import PRESETS, load_preset
from .validation import validate_config

logger = get_logger(__name__)

ENV_PREFIX = "SLOC_GUARD_"
REMOTE_TIMEOUT_SECONDS = 30

# Nested list-of-table fields and the dataclass each entry becomes.
_LIST_ITEM_TYPES = {
    (ContentConfig, "rules"): ContentRule,
    (ContentConfig, "overrides"): ContentOverride,
    (StructureConfig, "rules"): StructureRule,
    (StructureConfig, "overrides"): StructureOverride,
    (StructureRule, "siblings"): SiblingRule,
}


def global_config_path() -> Path:
    return Path.home() / ".config" / "sloc-guard" / "config.toml"


# ---------------------------------------------------------------------------
# TOML
# ---------------------------------------------------------------------------


def _tomllib():
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )
    return tomllib


def parse_toml_text(text: str, origin: str) -> dict:
    tomllib = _tomllib()
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise TomlParseError(Path(origin), str(e))


def load_toml_file(path: Path) -> dict:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read config file: {path}", details={"reason": e.strerror or str(e)}
        )
    return parse_toml_text(text, str(path))


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def find_project_root(start: Optional[Path] = None) -> Path:
    """Nearest ancestor of ``start`` holding ``.git`` or ``.sloc-guard.toml``.

    Falls back to ``start`` itself when no marker is found.
    """
    start = Path(start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists() or (candidate / CONFIG_FILENAME).is_file():
            return candidate
    return start


def discover_config_file(project_root: Path) -> Optional[Path]:
    candidate = Path(project_root) / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


# ---------------------------------------------------------------------------
# extends
# ---------------------------------------------------------------------------


def merge_tables(base: dict, override: dict) -> dict:
    """Deep-merge ``override`` over ``base``. Only tables merge; arrays replace."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_tables(merged[key], value)
        else:
            merged[key] = value
    return merged


def fetch_remote_config(url: str) -> str:
    if not url.startswith(("http://", "https://")):
        raise RemoteFetchError(url, "only http:// and https:// URLs are supported")
    logger.debug(f"Fetching remote config {url}")
    try:
        response = requests.get(url, timeout=REMOTE_TIMEOUT_SECONDS)
    except requests.exceptions.Timeout:
        raise RemoteFetchError(url, f"timed out after {REMOTE_TIMEOUT_SECONDS}s")
    except requests.exceptions.RequestException as e:
        raise RemoteFetchError(url, str(e))
    if response.status_code != 200:
        raise RemoteFetchError(url, f"HTTP {response.status_code}")
    return response.text


def _load_parent(ref: str, base_dir: Optional[Path]) -> tuple[dict, Optional[Path], str]:
    """Load the table named by ``extends``; returns (table, its dir, chain key)."""
    if ref.startswith(("http://", "https://")):
        return parse_toml_text(fetch_remote_config(ref), ref), None, ref
    if ref in PRESETS:
        return load_preset(ref), None, f"preset:{ref}"
    path = Path(ref).expanduser()
    if not path.is_absolute():
        if base_dir is None:
            raise ConfigurationError(
                f"Cannot resolve relative extends path from a remote or preset config: {ref}"
            )
        path = base_dir / path
    path = path.resolve()
    if not path.is_file():
        raise ConfigurationError(f"Extended config not found: {ref}", details={"path": str(path)})
    return load_toml_file(path), path.parent, str(path)


def resolve_extends(data: dict, base_dir: Optional[Path], chain: Optional[List[str]] = None) -> dict:
    """Follow the ``extends`` chain and merge every ancestor under ``data``."""
    chain = list(chain or [])
    ref = data.get("extends")
    if not ref:
        return data
    if not isinstance(ref, str):
        raise InvalidConfigError("extends", ref, "expected a preset name, path or URL")

    parent, parent_dir, key = _load_parent(ref, base_dir)
    if key in chain:
        raise ConfigurationError(
            "Cyclic extends chain", details={"chain": " -> ".join(chain + [key])}
        )
    parent = resolve_extends(parent, parent_dir, chain + [key])
    merged = merge_tables(parent, data)
    merged["extends"] = ref
    return merged


# ---------------------------------------------------------------------------
# dict -> dataclasses
# ---------------------------------------------------------------------------


def _type_ok(value: Any, hint: Any) -> bool:
    origin = get_origin(hint)
    if origin is Union:
        return any(_type_ok(value, arg) for arg in get_args(hint))
    if hint is type(None):
        return value is None
    if hint is bool:
        return isinstance(value, bool)
    if hint is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if hint is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if hint is str:
        return isinstance(value, str)
    if origin is list:
        (item,) = get_args(hint) or (Any,)
        return isinstance(value, list) and all(_type_ok(v, item) for v in value)
    return True


def _build(cls, data: Any, key: str):
    if not isinstance(data, dict):
        raise InvalidConfigError(key, data, "expected a table")
    hints = get_type_hints(cls)
    known = {f.name for f in fields(cls) if f.name != "source"}
    kwargs: Dict[str, Any] = {}

    for name, value in data.items():
        field_key = f"{key}.{name}" if key else name
        if name not in known:
            raise InvalidConfigError(field_key, value, "unknown field")
        hint = hints[name]
        item_cls = _LIST_ITEM_TYPES.get((cls, name))
        if item_cls is not None:
            if not isinstance(value, list):
                raise InvalidConfigError(field_key, value, "expected an array of tables")
            kwargs[name] = [_build(item_cls, v, f"{field_key}[{i}]") for i, v in enumerate(value)]
        elif is_dataclass(hint):
            kwargs[name] = _build(hint, value, field_key)
        elif name == "languages" and cls is Config:
            if not isinstance(value, dict):
                raise InvalidConfigError(field_key, value, "expected a table")
            kwargs[name] = {
                lang: _build(CustomLanguageConfig, spec, f"{field_key}.{lang}")
                for lang, spec in value.items()
            }
        else:
            if name == "version" and isinstance(value, (int, float)):
                value = str(value)
            if not _type_ok(value, hint):
                raise InvalidConfigError(field_key, value, f"expected {_describe(hint)}")
            if float in (hint, *get_args(hint)) and isinstance(value, int):
                value = float(value)
            kwargs[name] = value

    try:
        return cls(**kwargs)
    except TypeError as e:
        # Missing required field
        raise InvalidConfigError(key or "config", data, str(e))


def _describe(hint: Any) -> str:
    args = [a for a in get_args(hint) if a is not type(None)]
    if get_origin(hint) is Union and len(args) == 1:
        return _describe(args[0])
    if get_origin(hint) is list:
        return "an array"
    return getattr(hint, "__name__", str(hint))


def config_from_dict(data: dict) -> Config:
    return _build(Config, data, "")


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


def _load_env_vars() -> dict[str, Any]:
    """Load scalar ``[content]`` settings from SLOC_GUARD_* environment variables.

    Supported environment variables:
        SLOC_GUARD_MAX_LINES: int
        SLOC_GUARD_WARN_THRESHOLD: float
        SLOC_GUARD_WARN_AT: int
        SLOC_GUARD_SKIP_COMMENTS: bool (true/false/1/0)
        SLOC_GUARD_SKIP_BLANK: bool

    Returns:
        Dict of dotted key -> parsed value for any SLOC_GUARD_* vars found.
    """
    type_hints = get_type_hints(ContentConfig)
    result: dict[str, Any] = {}

    for f in fields(ContentConfig):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        try:
            parsed = _parse_env_value(env_value, type_hints[f.name])
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[f"content.{f.name}"] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types not settable from the environment (lists).
    """
    args = get_args(type_hint)
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]

    if get_origin(type_hint) is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    if type_hint is int:
        return int(value)
    if type_hint is float:
        return float(value)
    if type_hint is str or get_origin(type_hint) is Literal:
        return value
    return None


def _apply_override(data: dict, dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    node = data
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[leaf] = value


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def load_config(
    config_file: Optional[Path] = None,
    project_root: Optional[Path] = None,
    no_extends: bool = False,
    overrides: Optional[Dict[str, Any]] = None,
    use_global: bool = True,
) -> Config:
    """Load, merge and validate configuration.

    Args:
        config_file: Explicit config file (replaces project discovery)
        project_root: Directory searched for ``.sloc-guard.toml``
        no_extends: Ignore ``extends`` in the loaded files
        overrides: Dotted keys from CLI flags, applied last
        use_global: Merge the user-global config under the project one

    Returns:
        Validated Config

    Raises:
        ConfigurationError: If a file is missing, malformed or semantically invalid
    """
    merged: dict = {}
    source: Optional[Path] = None

    global_path = global_config_path()
    if use_global and global_path.is_file():
        global_data = load_toml_file(global_path)
        if not no_extends:
            global_data = resolve_extends(global_data, global_path.parent, [str(global_path)])
        merged = merge_tables(merged, global_data)
        source = global_path

    if config_file is not None:
        config_path = Path(config_file)
        if not config_path.is_file():
            raise ConfigurationError(f"Config file not found: {config_file}")
    else:
        root = Path(project_root) if project_root is not None else find_project_root()
        config_path = discover_config_file(root)

    if config_path is not None:
        config_path = config_path.resolve()
        data = load_toml_file(config_path)
        if not no_extends:
            data = resolve_extends(data, config_path.parent, [str(config_path)])
        merged = merge_tables(merged, data)
        source = config_path
        logger.debug(f"Loaded config from {config_path}")

    if no_extends:
        merged.pop("extends", None)

    for dotted, value in _load_env_vars().items():
        _apply_override(merged, dotted, value)
    for dotted, value in (overrides or {}).items():
        if value is not None:
            _apply_override(merged, dotted, value)

    try:
        config = config_from_dict(merged)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
    validate_config(config)

    if source is not None:
        object.__setattr__(config, "source", str(source))
    return config


__all__ = [
    "config_from_dict",
    "discover_config_file",
    "fetch_remote_config",
    "find_project_root",
    "load_config",
    "load_toml_file",
    "merge_tables",
    "parse_toml_text",
    "resolve_extends",
]
