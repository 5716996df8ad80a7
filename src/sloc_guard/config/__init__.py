"""Configuration: model, loading (TOML, extends, presets), validation and expiry."""

from .expires import ExpiredRule, collect_expired_rules
from .loader import (
    config_from_dict,
    discover_config_file,
    find_project_root,
    load_config,
    merge_tables,
)
from .models import (
    BASELINE_FILENAME,
    CONFIG_FILENAME,
    UNLIMITED,
    BaselineConfig,
    Config,
    ContentConfig,
    ContentOverride,
    ContentRule,
    CustomLanguageConfig,
    ScannerConfig,
    SiblingRule,
    StatsConfig,
    StatsReportConfig,
    StructureConfig,
    StructureOverride,
    StructureRule,
    TrendConfig,
)
from .presets import available_presets, load_preset
from .validation import validate_config

__all__ = [
    "BASELINE_FILENAME",
    "CONFIG_FILENAME",
    "UNLIMITED",
    "BaselineConfig",
    "Config",
    "ContentConfig",
    "ContentOverride",
    "ContentRule",
    "CustomLanguageConfig",
    "ExpiredRule",
    "ScannerConfig",
    "SiblingRule",
    "StatsConfig",
    "StatsReportConfig",
    "StructureConfig",
    "StructureOverride",
    "StructureRule",
    "TrendConfig",
    "available_presets",
    "collect_expired_rules",
    "config_from_dict",
    "discover_config_file",
    "find_project_root",
    "load_config",
    "load_preset",
    "merge_tables",
    "validate_config",
]
