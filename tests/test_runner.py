"""End-to-end tests for the check runner and stats collection."""

import json

import pytest

from sloc_guard.config import load_config
from sloc_guard.exceptions import BaselineError, FileAccessError
from sloc_guard.models import Category, Severity
from sloc_guard.runner import CheckOptions, CheckRunner, Project, collect_findings, collect_stats


def _project(root, use_cache=False):
    return Project(load_config(project_root=root), root, use_cache=use_cache)


def _run(root, **options):
    project = _project(root)
    try:
        return CheckRunner(project, CheckOptions(**options)).run()
    finally:
        project.close()


def _by_path(report):
    return {f.path: f for f in report.findings}


def _write_baseline(root, files):
    (root / ".sloc-guard-baseline.json").write_text(json.dumps({"version": 2, "files": files}))


class TestContentCheck:
    def test_file_over_default_limit_fails(self, project, rust_lines):
        root = project({"src/big.rs": rust_lines(600), "src/small.rs": rust_lines(10)})
        report = _run(root)

        big = _by_path(report)["src/big.rs"]
        assert (big.actual, big.limit) == (600, 500)
        assert big.severity is Severity.FAIL
        assert big.category is Category.NEW
        assert _by_path(report)["src/small.rs"].severity is Severity.OK
        assert report.files_checked == 2
        assert report.exit_code == 1

    def test_near_limit_warns_and_strict_escalates(self, project, rust_lines):
        root = project({"src/near.rs": rust_lines(460)})
        report = _run(root)
        assert _by_path(report)["src/near.rs"].severity is Severity.WARN
        assert report.exit_code == 0
        assert _run(root, strict=True).exit_code == 1

    def test_warn_only_demotes_failures(self, project, rust_lines):
        root = project({"src/big.rs": rust_lines(600)})
        report = _run(root, warn_only=True)
        assert _by_path(report)["src/big.rs"].severity is Severity.WARN
        assert report.exit_code == 0

    def test_override_with_reason(self, project, rust_lines):
        root = project(
            {"src/big.rs": rust_lines(600)},
            config='[[content.overrides]]\npath = "big.rs"\nmax_lines = 700\nreason = "Generated parser"\n',
        )
        big = _by_path(_run(root))["src/big.rs"]
        assert big.severity is Severity.OK
        assert big.limit == 700
        assert big.reason == "Generated parser"

    def test_rule_pulls_in_plain_text(self, project):
        root = project(
            {"docs/notes.txt": "one\ntwo\n\nthree\nfour\n", "docs/other.md": "x\n"},
            config='[[content.rules]]\npattern = "docs/*.txt"\nmax_lines = 3\n',
        )
        report = _run(root)
        notes = _by_path(report)["docs/notes.txt"]
        assert notes.actual == 4
        assert notes.severity is Severity.FAIL
        assert "docs/other.md" not in _by_path(report)

    def test_ignored_file_counts_zero(self, project, rust_lines):
        root = project({"src/gen.rs": "// sloc-guard:ignore-file\n" + rust_lines(600)})
        gen = _by_path(_run(root))["src/gen.rs"]
        assert gen.actual == 0
        assert gen.severity is Severity.OK
        assert gen.stats.ignored == 601

    def test_paths_limit_the_scan(self, project, rust_lines):
        root = project({"src/a.rs": rust_lines(1), "tests/b.rs": rust_lines(1)})
        assert set(_by_path(_run(root, paths=["src"]))) == {"src/a.rs"}
        assert set(_by_path(_run(root, paths=["src"], include=["tests"]))) == {"tests/b.rs"}

    def test_configured_include_paths_stay_relative_to_root(self, project, rust_lines, monkeypatch):
        root = project(
            {"src/a.rs": rust_lines(1), "tests/b.rs": rust_lines(1)},
            config='[scanner]\ninclude_paths = ["tests"]\n',
        )
        monkeypatch.chdir(root / "src")
        assert set(_by_path(_run(root))) == {"tests/b.rs"}

    def test_missing_command_line_path_raises(self, project, rust_lines):
        root = project({"src/a.rs": rust_lines(1)})
        with pytest.raises(FileAccessError):
            _run(root, paths=["missing"])

    def test_suggestions_for_failing_file(self, project, rust_lines):
        body = "".join(
            f"fn {name}() {{\n" + rust_lines(248) + "}\n" for name in ("alpha", "beta", "gamma")
        )
        root = project({"src/big.rs": body})
        big = _by_path(_run(root, suggest=True))["src/big.rs"]
        assert big.actual == 750
        assert len(big.suggestions) == 2
        assert big.suggestions[0].startswith("Move alpha, beta (lines 1-500")

    def test_custom_language_override_notice(self, project, rust_lines):
        root = project(
            {"src/a.rs": "# comment\n" + rust_lines(2)},
            config='[languages.MyRust]\nextensions = ["rs"]\nsingle_line_comments = ["#"]\n',
        )
        report = _run(root)
        assert "Custom language MyRust overrides Rust for .rs" in report.notices
        assert _by_path(report)["src/a.rs"].stats.comment == 1


class TestStructureCheck:
    def test_count_and_deny(self, project, rust_lines):
        root = project(
            {"src/a.rs": rust_lines(1), "src/b.rs": rust_lines(1), "src/a.rs.bak": "old\n"},
            config='[structure]\nmax_files = 2\ndeny_extensions = [".bak"]\n',
        )
        report = _run(root)
        kinds = {(f.path, f.kind) for f in report.violations}
        assert kinds == {("src/a.rs.bak", "denied_file")}

        (root / "src" / "c.rs").write_text(rust_lines(1))
        report = _run(root)
        files = _by_path(report)["src"]
        assert (files.kind, files.actual, files.limit) == ("files", 3, 2)
        assert report.exit_code == 1

    def test_leaf_only_rule_passes_strict(self, project, rust_lines):
        root = project(
            {"src/a/x.rs": rust_lines(1), "src/b/y.rs": rust_lines(1)},
            config='[[structure.rules]]\nscope = "src/*"\nmax_dirs = 0\nwarn_threshold = 0.9\n',
        )
        report = _run(root, strict=True)
        assert report.violations == []
        assert report.exit_code == 0


class TestBaselineRatchet:
    def test_shrinking_legacy_file_is_grandfathered(self, project, rust_lines):
        root = project({"src/legacy.rs": rust_lines(650)})
        _write_baseline(root, {"src/legacy.rs": {"type": "content", "lines": 700, "hash": ""}})

        report = _run(root)
        legacy = _by_path(report)["src/legacy.rs"]
        assert legacy.severity is Severity.WARN
        assert legacy.category is Category.GRANDFATHERED
        assert report.exit_code == 0

    def test_growing_legacy_file_is_worsened(self, project, rust_lines):
        root = project({"src/legacy.rs": rust_lines(710)})
        _write_baseline(root, {"src/legacy.rs": {"type": "content", "lines": 700, "hash": ""}})

        report = _run(root)
        legacy = _by_path(report)["src/legacy.rs"]
        assert legacy.severity is Severity.FAIL
        assert legacy.category is Category.WORSENED
        assert report.exit_code == 1

    def test_fixed_file_reported_as_improved(self, project, rust_lines):
        root = project({"src/legacy.rs": rust_lines(100)})
        _write_baseline(root, {"src/legacy.rs": {"type": "content", "lines": 700, "hash": ""}})
        report = _run(root)
        assert report.improved == ["src/legacy.rs"]
        assert report.exit_code == 0

    def test_strict_ratchet_fails_on_stale_baseline(self, project, rust_lines):
        root = project({"src/legacy.rs": rust_lines(100)}, config='[baseline]\nratchet = "strict"\n')
        _write_baseline(root, {"src/legacy.rs": {"type": "content", "lines": 700, "hash": ""}})
        report = _run(root)
        assert report.baseline_stale
        assert report.exit_code == 1

    def test_auto_ratchet_tightens_baseline(self, project, rust_lines):
        root = project({"src/legacy.rs": rust_lines(650)}, config='[baseline]\nratchet = "auto"\n')
        _write_baseline(root, {"src/legacy.rs": {"type": "content", "lines": 700, "hash": ""}})

        report = _run(root)
        assert report.baseline_updated
        data = json.loads((root / ".sloc-guard-baseline.json").read_text())
        assert data["files"]["src/legacy.rs"]["lines"] == 650

    def test_update_baseline_records_violations(self, project, rust_lines):
        root = project({"src/big.rs": rust_lines(600), "src/ok.rs": rust_lines(5)})
        report = _run(root, update_baseline=True)
        assert report.baseline_updated
        data = json.loads((root / ".sloc-guard-baseline.json").read_text())
        assert list(data["files"]) == ["src/big.rs"]
        assert data["files"]["src/big.rs"]["lines"] == 600

        assert _run(root).exit_code == 0

    def test_explicit_missing_baseline_is_an_error(self, project, rust_lines):
        root = project({"src/a.rs": rust_lines(1)})
        with pytest.raises(BaselineError):
            _run(root, baseline_path=root / "missing.json")


class TestCollect:
    def test_collect_findings_ignores_baseline(self, project, rust_lines):
        root = project({"src/legacy.rs": rust_lines(650)})
        _write_baseline(root, {"src/legacy.rs": {"type": "content", "lines": 700, "hash": ""}})
        project_ = _project(root)
        try:
            (finding,) = collect_findings(project_)
        finally:
            project_.close()
        assert finding.category is Category.NEW
        assert finding.is_failure

    def test_stats_and_history(self, project, rust_lines):
        root = project({"src/a.rs": rust_lines(10), "src/b.py": "# c\n\nx = 1\n"})
        project_ = _project(root)
        try:
            first = collect_stats(project_)
            (root / "src" / "c.rs").write_text(rust_lines(5))
            second = collect_stats(project_)
            third = collect_stats(project_, record_history=False)
        finally:
            project_.close()

        assert [f.path for f in first.files] == ["src/a.rs", "src/b.py"]
        assert first.totals.code == 11
        assert first.trend is None
        assert (second.trend.files, second.trend.code) == (1, 5)
        assert third.trend is None
        assert (root / ".git" / "sloc-guard" / "history.json").is_file()

    def test_cache_round_trip(self, project, rust_lines):
        root = project({"src/a.rs": rust_lines(10)})
        first = _project(root, use_cache=True)
        try:
            CheckRunner(first).run()
        finally:
            first.close()

        second = _project(root, use_cache=True)
        try:
            report = CheckRunner(second).run()
            assert second.cache.hits == 1
        finally:
            second.close()
        assert _by_path(report)["src/a.rs"].actual == 10
