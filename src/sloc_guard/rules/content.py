"""Content limit resolution: override > last matching rule > global defaults."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config.models import ContentConfig, ContentOverride, ContentRule
from ..languages import extension_of
from ..logging_config import get_logger
from ..matching import Glob, GlobSet, normalize_path, suffix_matches

logger = get_logger(__name__)


@dataclass(frozen=True)
class ContentLimits:
    """Effective content settings for one file."""

    max_lines: int
    warn_threshold: float
    warn_at: Optional[int] = None
    skip_comments: bool = True
    skip_blank: bool = True
    override_reason: Optional[str] = None
    rule_reason: Optional[str] = None
    source: str = "content (default)"

    @property
    def reason(self) -> Optional[str]:
        return self.override_reason or self.rule_reason

    @property
    def warn_limit(self) -> float:
        """Line count at which a file starts warning."""
        if self.warn_at is not None:
            return float(self.warn_at)
        return self.max_lines * self.warn_threshold

    def severity_for(self, sloc: int) -> str:
        """Compare a line count against these limits: ``ok``, ``warn`` or ``fail``."""
        if sloc > self.max_lines:
            return "fail"
        if self.warn_at is None and self.warn_threshold >= 1.0:
            return "ok"
        if sloc >= self.warn_limit:
            return "warn"
        return "ok"


@dataclass(frozen=True)
class MatchedExcluded:
    pattern: str


@dataclass(frozen=True)
class MatchedOverride:
    index: int
    path: str
    reason: str


@dataclass(frozen=True)
class MatchedRule:
    index: int
    pattern: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class MatchedDefault:
    pass


@dataclass(frozen=True)
class RuleCandidate:
    source: str  # "content.overrides[0]", "content.rules[2]", "content (default)"
    pattern: str
    status: str  # matched / superseded / no_match
    max_lines: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class ContentExplanation:
    path: str
    matched_rule: object
    limits: Optional[ContentLimits]
    rule_chain: List[RuleCandidate] = field(default_factory=list)
    language: Optional[str] = None

    @property
    def excluded(self) -> bool:
        return isinstance(self.matched_rule, MatchedExcluded)


class ContentResolver:
    """Compiled content rules, shared read-only across worker threads."""

    def __init__(self, config: ContentConfig):
        self.config = config
        self.extensions = frozenset(config.extensions)
        self.exclude = GlobSet(config.exclude)
        self.rules: List[Tuple[Glob, ContentRule]] = [(Glob(r.pattern), r) for r in config.rules]
        self.overrides: List[ContentOverride] = list(config.overrides)

    # -- matching --

    def _override_for(self, path: str) -> Optional[Tuple[int, ContentOverride]]:
        for i, override in enumerate(self.overrides):
            if suffix_matches(path, override.path):
                return i, override
        return None

    def _rule_for(self, path: str) -> Optional[Tuple[int, ContentRule]]:
        winner = None
        for i, (glob, rule) in enumerate(self.rules):
            if glob.matches(path):
                winner = (i, rule)
        return winner

    def has_explicit_match(self, path) -> bool:
        """True when an override or rule names this path, whatever its extension."""
        normalized = normalize_path(path)
        return self._override_for(normalized) is not None or self._rule_for(normalized) is not None

    def is_excluded(self, path) -> bool:
        return self.exclude.is_match(path)

    def should_process(self, path) -> bool:
        normalized = normalize_path(path)
        if self.exclude.is_match(normalized):
            return False
        ext = extension_of(normalized)
        if ext and (not self.extensions or ext in self.extensions):
            return True
        return self.has_explicit_match(normalized)

    # -- resolution --

    def _defaults(self) -> ContentLimits:
        c = self.config
        return ContentLimits(
            max_lines=c.max_lines,
            warn_threshold=c.warn_threshold,
            warn_at=c.warn_at,
            skip_comments=c.skip_comments,
            skip_blank=c.skip_blank,
        )

    def _from_override(self, index: int, override: ContentOverride) -> ContentLimits:
        c = self.config
        warn_at = c.warn_at if c.warn_at is not None and c.warn_at < override.max_lines else None
        return ContentLimits(
            max_lines=override.max_lines,
            warn_threshold=c.warn_threshold,
            warn_at=warn_at,
            skip_comments=c.skip_comments,
            skip_blank=c.skip_blank,
            override_reason=override.reason,
            source=f"content.overrides[{index}]",
        )

    def _from_rule(self, index: int, rule: ContentRule) -> ContentLimits:
        c = self.config
        # Warn settings come from the matched rule as a unit, else from the globals.
        if rule.warn_at is not None or rule.warn_threshold is not None:
            warn_threshold = rule.warn_threshold if rule.warn_threshold is not None else c.warn_threshold
            warn_at = rule.warn_at
        else:
            warn_threshold, warn_at = c.warn_threshold, c.warn_at
        return ContentLimits(
            max_lines=rule.max_lines if rule.max_lines is not None else c.max_lines,
            warn_threshold=warn_threshold,
            warn_at=warn_at,
            skip_comments=rule.skip_comments if rule.skip_comments is not None else c.skip_comments,
            skip_blank=rule.skip_blank if rule.skip_blank is not None else c.skip_blank,
            rule_reason=rule.reason,
            source=f"content.rules[{index}]",
        )

    def resolve(self, path) -> ContentLimits:
        normalized = normalize_path(path)
        found = self._override_for(normalized)
        if found is not None:
            return self._from_override(*found)
        matched = self._rule_for(normalized)
        if matched is not None:
            return self._from_rule(*matched)
        return self._defaults()

    def explain(self, path) -> ContentExplanation:
        """Full decision trace for ``path``, superseded candidates included."""
        normalized = normalize_path(path)
        chain: List[RuleCandidate] = []

        excluded_by = self.exclude.first_match(normalized)
        if excluded_by is not None:
            return ContentExplanation(normalized, MatchedExcluded(excluded_by), None, chain)

        override = self._override_for(normalized)
        winner = self._rule_for(normalized)

        for i, candidate in enumerate(self.overrides):
            if override is not None and i == override[0]:
                status = "matched"
            elif suffix_matches(normalized, candidate.path):
                status = "superseded"
            else:
                status = "no_match"
            chain.append(
                RuleCandidate(
                    f"content.overrides[{i}]", candidate.path, status, candidate.max_lines, candidate.reason
                )
            )

        for i, (glob, rule) in enumerate(self.rules):
            if not glob.matches(normalized):
                status = "no_match"
            elif override is None and winner is not None and i == winner[0]:
                status = "matched"
            else:
                status = "superseded"
            chain.append(RuleCandidate(f"content.rules[{i}]", rule.pattern, status, rule.max_lines, rule.reason))

        default_status = "matched" if override is None and winner is None else "superseded"
        chain.append(
            RuleCandidate("content (default)", "*", default_status, self.config.max_lines, None)
        )

        if override is not None:
            index, entry = override
            matched = MatchedOverride(index, entry.path, entry.reason)
        elif winner is not None:
            index, rule = winner
            matched = MatchedRule(index, rule.pattern, rule.reason)
        else:
            matched = MatchedDefault()

        limits = self.resolve(normalized)
        logger.debug(f"Resolved {normalized} via {limits.source}")
        return ContentExplanation(normalized, matched, limits, chain)
