"""Check orchestration: scan, classify, resolve, compare, ratchet, report.

``Project`` holds the compiled, read-only pieces of a run (language
registry, content resolver, structure checker, cache); ``CheckRunner`` and
``collect_stats`` drive it. Worker threads share the project by reference
and return their results; nothing is mutated during the parallel phase.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple

from .baseline import (
    Baseline,
    BaselineUpdateMode,
    RatchetMode,
    apply_ratchet,
    load_baseline,
    save_baseline,
    stale_entries,
    tighten_baseline,
    update_baseline,
)
from .cache import StatsCache
from .config import Config, collect_expired_rules
from .counting import CountResult, IgnoredFile, LineStats, count_file, split_lines
from .exceptions import FileAccessError
from .git_diff import changed_files
from .history import HistoryEntry, record_entry
from .languages import PLAIN_TEXT, Language, LanguageRegistry, custom_language
from .logging_config import get_logger
from .models import CONTENT_KIND, CheckReport, Finding, Severity
from .rules import ContentLimits, ContentResolver, StructureChecker, StructureViolation
from .scanning import ScannedFile, Scanner, ScanResult
from .state import cache_dir, history_path
from .stats import FileStat, StatsReport
from .suggestions import suggest_split

logger = get_logger(__name__)

_SEVERITY = {"ok": Severity.OK, "warn": Severity.WARN, "fail": Severity.FAIL}


@dataclass
class CheckOptions:
    paths: List[str] = field(default_factory=list)
    include: List[str] = field(default_factory=list)
    diff: Optional[str] = None
    baseline_path: Optional[Path] = None
    strict: bool = False
    warn_only: bool = False
    use_cache: bool = True
    suggest: bool = False
    update_baseline: bool = False
    max_workers: Optional[int] = None


@dataclass
class FileOutcome:
    scanned: ScannedFile
    language: Language
    result: CountResult
    file_hash: str

    @property
    def stats(self) -> LineStats:
        if isinstance(self.result, IgnoredFile):
            return self.result.to_stats()
        return self.result


class Project:
    """Compiled configuration for one run, shared read-only across workers."""

    def __init__(self, config: Config, project_root: Path, use_cache: bool = True):
        self.config = config
        self.root = Path(project_root).resolve()
        custom = [
            custom_language(name, lang.extensions, lang.single_line_comments, lang.multi_line_comments)
            for name, lang in config.languages.items()
        ]
        self.registry, self.language_overrides = LanguageRegistry.with_custom(custom)
        self.resolver = ContentResolver(config.content)
        self.checker = StructureChecker(config.structure)
        self.cache = StatsCache(cache_dir(self.root), config.content_hash(), enabled=use_cache)

    def close(self) -> None:
        self.cache.close()

    def baseline_file(self, override: Optional[Path] = None) -> Path:
        """``--baseline`` if given, else ``baseline.path`` relative to the project root."""
        if override is not None:
            return Path(override)
        path = Path(self.config.baseline.path)
        return path if path.is_absolute() else self.root / path

    def scan_roots(self, include: Sequence[str] = (), paths: Sequence[str] = ()) -> List[Path]:
        """``--include`` beats positional paths, which beat ``scanner.include_paths``.

        Command-line paths are relative to the working directory and must
        exist; configured include paths are relative to the project root.
        Raises FileAccessError for a missing command-line path.
        """
        given = list(include) or list(paths)
        if not given:
            configured = list(self.config.scanner.include_paths) or ["."]
            return [self.root / entry for entry in configured]

        cwd = Path.cwd()
        roots = []
        for entry in given:
            path = Path(entry)
            if not path.is_absolute():
                path = cwd / path
            if not path.exists():
                raise FileAccessError(path, "scan path does not exist")
            roots.append(path)
        return roots

    def scanner(self, with_structure: bool = True, use_gitignore: Optional[bool] = None) -> Scanner:
        policy = self.checker if with_structure and self.checker.is_enabled else None
        return Scanner(
            self.root,
            exclude=self.config.scanner.exclude,
            use_gitignore=self.config.scanner.gitignore if use_gitignore is None else use_gitignore,
            file_filter=self.resolver.should_process,
            child_policy=policy,
        )

    def language_for(self, rel_path: str) -> Optional[Language]:
        language = self.registry.for_path(rel_path)
        if language is not None:
            return language
        # Files pulled in only by a rule or override are counted as plain text
        if self.resolver.has_explicit_match(rel_path):
            return PLAIN_TEXT
        return None

    def count(self, scanned: ScannedFile) -> Optional[FileOutcome]:
        """Classify one file. Raises OSError when it cannot be read."""
        language = self.language_for(scanned.rel_path)
        if language is None:
            logger.debug(f"Skipped (no language): {scanned.rel_path}")
            return None
        cached = self.cache.get(scanned.path, language.name)
        if cached is not None:
            result, file_hash = cached
        else:
            result, file_hash = count_file(scanned.path, language)
            self.cache.set(scanned.path, language.name, result, file_hash)
        return FileOutcome(scanned, language, result, file_hash)

    def count_all(
        self, files: Sequence[ScannedFile], max_workers: Optional[int] = None
    ) -> Tuple[List[FileOutcome], int, int]:
        """Classify files in parallel; returns (outcomes, skipped, errors)."""
        outcomes: List[FileOutcome] = []
        skipped = errors = 0
        if not files:
            return outcomes, skipped, errors
        workers = max_workers or min(32, (os.cpu_count() or 1) + 4)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.count, f): f for f in files}
            for future in as_completed(futures):
                scanned = futures[future]
                try:
                    outcome = future.result()
                except OSError as e:
                    logger.warning(f"Cannot read {scanned.rel_path}: {e.strerror or e}")
                    errors += 1
                    continue
                if outcome is None:
                    skipped += 1
                else:
                    outcomes.append(outcome)
        return outcomes, skipped, errors


def content_finding(outcome: FileOutcome, limits: ContentLimits) -> Finding:
    """Compare one file's effective line count against its limits."""
    stats = outcome.stats
    if isinstance(outcome.result, IgnoredFile):
        actual = 0
    else:
        actual = stats.effective_lines(limits.skip_comments, limits.skip_blank)
    return Finding(
        path=outcome.scanned.rel_path,
        kind=CONTENT_KIND,
        actual=actual,
        limit=limits.max_lines,
        severity=_SEVERITY[limits.severity_for(actual)],
        reason=limits.reason,
        stats=stats,
        file_hash=outcome.file_hash,
        rule=limits.source,
    )


def structure_finding(violation: StructureViolation) -> Finding:
    return Finding(
        path=violation.path,
        kind=violation.kind.value,
        actual=violation.actual,
        limit=violation.limit,
        severity=Severity.WARN if violation.is_warning else Severity.FAIL,
        reason=violation.override_reason,
        detail=violation.detail,
        rule=violation.triggering_rule_pattern,
    )


def _read_lines(path: Path) -> List[str]:
    with open(path, "rb") as f:
        return split_lines(f.read().decode("utf-8", errors="replace"))


class CheckRunner:
    """Run ``check`` end to end and build the report."""

    def __init__(self, project: Project, options: Optional[CheckOptions] = None):
        self.project = project
        self.options = options or CheckOptions()
        self.config = project.config

    def _notices(self) -> List[str]:
        notices = []
        for ext, old, new in self.project.language_overrides:
            notices.append(f"Custom language {new} overrides {old} for .{ext}")
        for expired in collect_expired_rules(self.config):
            notices.append(
                f"{expired.key} ({expired.pattern}) expired on {expired.expires.isoformat()}"
            )
        for notice in notices:
            logger.warning(notice)
        return notices

    def _baseline_file(self) -> Path:
        return self.project.baseline_file(self.options.baseline_path)

    def _load_baseline(self) -> Optional[Baseline]:
        path = self._baseline_file()
        if path.is_file():
            return load_baseline(path)
        if self.options.baseline_path is not None and not self.options.update_baseline:
            return load_baseline(path)
        return None

    def scan(self) -> ScanResult:
        roots = self.project.scan_roots(self.options.include, self.options.paths)
        return self.project.scanner().scan(roots)

    def run(self) -> CheckReport:
        started = time.monotonic()
        report = CheckReport(strict=self.options.strict, warn_only=self.options.warn_only)
        report.notices = self._notices()

        # Fatal problems surface before any scanning
        changed: Optional[Set[str]] = None
        if self.options.diff:
            changed = changed_files(self.project.root, self.options.diff)
        baseline = self._load_baseline()

        scan = self.scan()
        files = scan.files
        if changed is not None:
            files = [f for f in files if f.rel_path in changed]

        outcomes, skipped, errors = self.project.count_all(files, self.options.max_workers)
        report.files_checked = len(outcomes)
        report.skipped = scan.skipped + skipped
        report.errors = scan.errors + errors

        findings = [self._content(outcome) for outcome in outcomes]
        if self.project.checker.is_enabled:
            findings.extend(structure_finding(v) for v in self.project.checker.check(scan.dirs))

        report.findings = self._ratchet(findings, baseline, report, {o.scanned.rel_path for o in outcomes})
        if self.options.warn_only:
            report.findings = [
                replace(f, severity=Severity.WARN) if f.is_failure else f for f in report.findings
            ]
        report.findings.sort(key=Finding.sort_key)

        self._write_baseline(baseline, report, {o.scanned.rel_path for o in outcomes})
        report.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Check complete: {report.files_checked} files, {len(report.violations)} violations "
            f"in {report.duration_ms}ms"
        )
        return report

    def _content(self, outcome: FileOutcome) -> Finding:
        limits = self.project.resolver.resolve(outcome.scanned.rel_path)
        finding = content_finding(outcome, limits)
        if self.options.suggest and finding.is_failure:
            try:
                lines = _read_lines(outcome.scanned.path)
            except OSError as e:
                logger.warning(f"Cannot read {finding.path} for suggestions: {e}")
            else:
                finding.suggestions = suggest_split(finding.path, lines, outcome.language, limits.max_lines)
        return finding

    def _ratchet(
        self, findings: List[Finding], baseline: Optional[Baseline], report: CheckReport, checked: Set[str]
    ) -> List[Finding]:
        if baseline is None:
            return findings
        mode = RatchetMode(self.config.baseline.ratchet)
        ratcheted = [apply_ratchet(f, baseline, mode) for f in findings]
        if mode is not RatchetMode.OFF:
            report.improved = stale_entries(baseline, ratcheted, checked)
            if report.improved:
                logger.info(f"{len(report.improved)} baseline entries no longer violate")
            if mode is RatchetMode.STRICT and report.improved:
                report.baseline_stale = True
                report.notices.append(
                    "Baseline is out of date: run 'sloc-guard baseline update' to record improvements"
                )
        return ratcheted

    def _write_baseline(self, baseline: Optional[Baseline], report: CheckReport, checked: Set[str]) -> None:
        path = self._baseline_file()
        if self.options.update_baseline:
            save_baseline(update_baseline(baseline, report.findings, BaselineUpdateMode.ALL), path)
            report.baseline_updated = True
            return
        if baseline is None or self.config.baseline.ratchet != RatchetMode.AUTO.value:
            return
        if report.has_failures:
            return
        tightened = tighten_baseline(baseline, report.findings, checked)
        if tightened.files != baseline.files:
            save_baseline(tightened, path)
            report.baseline_updated = True


def collect_findings(project: Project, options: Optional[CheckOptions] = None) -> List[Finding]:
    """Raw, un-ratcheted findings for the scan roots (used by ``baseline`` commands)."""
    runner = CheckRunner(project, options)
    scan = runner.scan()
    outcomes, _, _ = project.count_all(scan.files, runner.options.max_workers)
    findings = [runner._content(outcome) for outcome in outcomes]
    if project.checker.is_enabled:
        findings.extend(structure_finding(v) for v in project.checker.check(scan.dirs))
    findings.sort(key=Finding.sort_key)
    return findings


def collect_stats(
    project: Project,
    paths: Sequence[str] = (),
    include: Sequence[str] = (),
    max_workers: Optional[int] = None,
    record_history: bool = True,
) -> StatsReport:
    """Line totals for every processed file, plus the trend since the last run."""
    scanner = project.scanner(with_structure=False)
    scan = scanner.scan(project.scan_roots(include, paths))
    outcomes, skipped, errors = project.count_all(scan.files, max_workers)

    report_config = project.config.stats.report
    report = StatsReport(
        files=sorted(
            (FileStat(o.scanned.rel_path, o.language.name, o.stats) for o in outcomes),
            key=lambda f: f.path,
        ),
        breakdown_by=report_config.breakdown_by,
        top_count=report_config.top_count,
        excluded_sections=list(report_config.exclude),
        skipped=scan.skipped + skipped,
        errors=scan.errors + errors,
    )
    if record_history:
        entry = HistoryEntry.from_totals(len(report.files), report.totals)
        report.trend = record_entry(
            history_path(project.root), entry, project.config.trend.max_entries
        )
    return report
