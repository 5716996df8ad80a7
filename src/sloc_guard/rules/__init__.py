"""Rule resolution for content limits and directory structure limits."""

from .content import (
    ContentExplanation,
    ContentLimits,
    ContentResolver,
    MatchedDefault,
    MatchedExcluded,
    MatchedOverride,
    MatchedRule,
    RuleCandidate,
)
from .structure import (
    StructureChecker,
    StructureExplanation,
    StructureLimits,
    StructureRuleCandidate,
    StructureViolation,
    ViolationType,
)

__all__ = [
    "ContentExplanation",
    "ContentLimits",
    "ContentResolver",
    "MatchedDefault",
    "MatchedExcluded",
    "MatchedOverride",
    "MatchedRule",
    "RuleCandidate",
    "StructureChecker",
    "StructureExplanation",
    "StructureLimits",
    "StructureRuleCandidate",
    "StructureViolation",
    "ViolationType",
]
