"""Tests for the check and stats formatters."""

import json

import pytest

from sloc_guard.counting import LineStats
from sloc_guard.formatters import (
    HtmlFormatter,
    JsonFormatter,
    MarkdownFormatter,
    SarifFormatter,
    TextFormatter,
    get_formatter,
    get_stats_formatter,
)
from sloc_guard.history import TrendDelta
from sloc_guard.models import Category, CheckReport, Finding, Severity
from sloc_guard.stats import FileStat, StatsReport


def _report(**kwargs):
    findings = [
        Finding("src/big.rs", "content", 600, 500, Severity.FAIL, stats=LineStats(code=600)),
        Finding("src/near.rs", "content", 460, 500, Severity.WARN, stats=LineStats(code=460)),
        Finding("src/ok.rs", "content", 10, 500, Severity.OK, stats=LineStats(code=10)),
        Finding("src/legacy.rs", "content", 650, 500, Severity.WARN,
                category=Category.GRANDFATHERED, reason="Legacy"),
        Finding("src/modules", "files", 12, 10, Severity.FAIL),
        Finding("src/a.bak", "denied_file", 1, 0, Severity.FAIL, detail="*.bak"),
    ]
    return CheckReport(findings=findings, files_checked=4, **kwargs)


class TestGetFormatter:
    @pytest.mark.parametrize("name,cls", [
        ("text", TextFormatter),
        ("json", JsonFormatter),
        ("sarif", SarifFormatter),
        ("markdown", MarkdownFormatter),
        ("html", HtmlFormatter),
    ])
    def test_known(self, name, cls):
        assert isinstance(get_formatter(name), cls)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown formatter"):
            get_formatter("xml")


class TestJsonFormatter:
    def test_contract(self):
        data = json.loads(JsonFormatter().format(_report(improved=["src/fixed.rs"])))
        assert set(data) == {"summary", "findings", "improved"}
        assert data["summary"] == {
            "total_files": 4,
            "passed": 1,
            "failed": 3,
            "warnings": 1,
            "grandfathered": 1,
        }
        assert data["improved"] == ["src/fixed.rs"]

        first = data["findings"][0]
        assert first["path"] == "src/big.rs"
        assert first["severity"] == "fail"
        assert first["category"] == "new"
        assert first["stats"]["code"] == 600

    def test_reason_and_detail_included(self):
        data = json.loads(JsonFormatter().format(_report()))
        by_path = {f["path"]: f for f in data["findings"]}
        assert by_path["src/legacy.rs"]["reason"] == "Legacy"
        assert by_path["src/legacy.rs"]["category"] == "grandfathered"
        assert by_path["src/a.bak"]["detail"] == "*.bak"

    def test_suggestions_only_when_requested(self):
        report = _report()
        report.findings[0].suggestions = ["Move parse_* (120 lines) into src/big_parse.rs"]
        hidden = json.loads(JsonFormatter().format(report))
        shown = json.loads(JsonFormatter(show_suggestions=True).format(report))
        assert "suggestions" not in hidden["findings"][0]
        assert shown["findings"][0]["suggestions"] == report.findings[0].suggestions


class TestSarifFormatter:
    def test_results_for_violations_only(self):
        document = json.loads(SarifFormatter().format(_report()))
        assert document["version"] == "2.1.0"
        run = document["runs"][0]
        assert [r["id"] for r in run["tool"]["driver"]["rules"]] == [
            "sloc-guard/content",
            "sloc-guard/structure",
        ]
        results = run["results"]
        assert len(results) == 5
        by_uri = {r["locations"][0]["physicalLocation"]["artifactLocation"]["uri"]: r for r in results}
        assert by_uri["src/big.rs"]["level"] == "error"
        assert by_uri["src/big.rs"]["ruleId"] == "sloc-guard/content"
        assert by_uri["src/near.rs"]["level"] == "warning"
        assert by_uri["src/modules"]["ruleId"] == "sloc-guard/structure"
        assert "[grandfathered]" in by_uri["src/legacy.rs"]["message"]["text"]
        assert by_uri["src/a.bak"]["message"]["text"] == "denied file: *.bak"


class TestTextFormatter:
    def test_table_and_summary(self):
        text = TextFormatter(color="never").format(_report())
        assert "src/big.rs" in text
        assert "600/500" in text
        assert "src/ok.rs" not in text
        assert "4 files checked, 1 passed, 1 warnings, 3 failed, 1 grandfathered" in text

    def test_clean_report(self):
        text = TextFormatter().format(CheckReport(files_checked=3))
        assert "Size violations" not in text
        assert "3 files checked" in text

    def test_notices_and_improved(self):
        report = _report(improved=["src/fixed.rs"], notices=["content.rules[0] (src/**) expired on 2024-01-01"])
        text = TextFormatter().format(report)
        assert "Notice:" in text
        assert "Improved:" in text
        assert "src/fixed.rs" in text


class TestMarkdownAndHtml:
    def test_markdown(self):
        text = MarkdownFormatter().format(_report())
        assert text.startswith("## sloc-guard")
        assert "| ❌ fail | `src/big.rs` | content | 600 | 500 |  |  |" in text
        assert "grandfathered | `src/legacy.rs`" in text

    def test_markdown_clean(self):
        assert "No violations." in MarkdownFormatter().format(CheckReport())

    def test_html_escapes(self):
        report = CheckReport(findings=[
            Finding("src/<x>.rs", "content", 600, 500, Severity.FAIL, reason="a & b"),
        ])
        html = HtmlFormatter().format(report)
        assert "<code>src/&lt;x&gt;.rs</code>" in html
        assert "a &amp; b" in html
        assert html.startswith("<!DOCTYPE html>")


class TestStatsFormatters:
    @pytest.fixture
    def stats_report(self):
        return StatsReport(
            files=[
                FileStat("src/a.rs", "Rust", LineStats(code=100, comment=10, blank=5)),
                FileStat("src/b.py", "Python", LineStats(code=40, comment=2, blank=3)),
                FileStat("lib/c.rs", "Rust", LineStats(code=20)),
            ],
            top_count=2,
            trend=TrendDelta(files=1, code=-5, comment=0, blank=2, previous_timestamp=0),
        )

    def test_json(self, stats_report):
        data = json.loads(get_stats_formatter("json").format(stats_report))
        assert data["summary"]["total_files"] == 3
        assert data["summary"]["code"] == 160
        assert data["breakdown"]["by"] == "language"
        assert [r["key"] for r in data["breakdown"]["rows"]] == ["Rust", "Python"]
        assert [f["path"] for f in data["top_files"]] == ["src/a.rs", "src/b.py"]
        assert data["trend"] == {"files": 1, "code": -5, "comment": 0, "blank": 2}

    def test_directory_breakdown_and_excluded_sections(self, stats_report):
        stats_report.breakdown_by = "dir"
        stats_report.excluded_sections = ["Files", "trend"]
        data = json.loads(get_stats_formatter("json").format(stats_report))
        assert data["breakdown"]["by"] == "directory"
        assert [r["key"] for r in data["breakdown"]["rows"]] == ["src", "lib"]
        assert "top_files" not in data
        assert "trend" not in data

    def test_text(self, stats_report):
        text = get_stats_formatter("text", color="never").format(stats_report)
        assert "3 files: 160 code" in text
        assert "files +1, code -5" in text

    def test_markdown(self, stats_report):
        text = get_stats_formatter("markdown").format(stats_report)
        assert "| Rust | 2 | 120 | 10 | 5 |" in text

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_stats_formatter("html")
