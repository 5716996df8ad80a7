"""Tests for the baseline file and the ratchet."""

import json

import pytest

from sloc_guard.baseline import (
    Baseline,
    BaselineUpdateMode,
    ContentEntry,
    RatchetMode,
    StructureEntry,
    apply_ratchet,
    build_baseline,
    entry_for,
    hash_file,
    load_baseline,
    save_baseline,
    stale_entries,
    tighten_baseline,
    update_baseline,
)
from sloc_guard.exceptions import BaselineError
from sloc_guard.models import Category, Finding, Severity


def _content(path, actual, limit=500, severity=Severity.FAIL, file_hash="abc"):
    return Finding(path, "content", actual, limit, severity, file_hash=file_hash)


def _structure(path, kind, actual, limit, severity=Severity.FAIL):
    return Finding(path, kind, actual, limit, severity)


@pytest.fixture
def legacy_baseline():
    return Baseline(files={"src/legacy.rs": ContentEntry(lines=700, hash="abc")})


class TestRatchetWarnMode:
    def test_shrunk_file_is_grandfathered(self, legacy_baseline):
        finding = apply_ratchet(_content("src/legacy.rs", 650), legacy_baseline, RatchetMode.WARN)
        assert finding.severity is Severity.WARN
        assert finding.category is Category.GRANDFATHERED
        assert finding.is_grandfathered
        assert not finding.is_warning

    def test_grown_file_is_worsened(self, legacy_baseline):
        finding = apply_ratchet(_content("src/legacy.rs", 710), legacy_baseline, RatchetMode.WARN)
        assert finding.severity is Severity.FAIL
        assert finding.category is Category.WORSENED

    def test_unknown_path_stays_new(self, legacy_baseline):
        finding = apply_ratchet(_content("src/other.rs", 600), legacy_baseline, RatchetMode.WARN)
        assert finding.category is Category.NEW
        assert finding.is_failure

    def test_passing_finding_untouched(self, legacy_baseline):
        ok = _content("src/legacy.rs", 100, severity=Severity.OK)
        assert apply_ratchet(ok, legacy_baseline, RatchetMode.WARN) is ok

    def test_off_mode_ignores_baseline(self, legacy_baseline):
        finding = apply_ratchet(_content("src/legacy.rs", 650), legacy_baseline, RatchetMode.OFF)
        assert finding.is_failure
        assert finding.category is Category.NEW

    def test_kind_mismatch_is_not_grandfathered(self, legacy_baseline):
        finding = apply_ratchet(
            _structure("src/legacy.rs", "files", 3, 1), legacy_baseline, RatchetMode.WARN
        )
        assert finding.category is Category.NEW

    def test_structure_count(self):
        baseline = Baseline(files={"src": StructureEntry("files", 42)})
        kept = apply_ratchet(_structure("src", "files", 40, 10), baseline, RatchetMode.WARN)
        assert kept.is_grandfathered
        grown = apply_ratchet(_structure("src", "files", 43, 10), baseline, RatchetMode.WARN)
        assert grown.category is Category.WORSENED
        other = apply_ratchet(_structure("src", "dirs", 5, 1), baseline, RatchetMode.WARN)
        assert other.category is Category.NEW


class TestRatchetStrictMode:
    def test_exact_match_grandfathered(self, legacy_baseline):
        finding = apply_ratchet(_content("src/legacy.rs", 700), legacy_baseline, RatchetMode.STRICT)
        assert finding.is_grandfathered

    def test_shrunk_file_is_not_grandfathered(self, legacy_baseline):
        finding = apply_ratchet(_content("src/legacy.rs", 650), legacy_baseline, RatchetMode.STRICT)
        assert finding.category is Category.WORSENED

    def test_hash_change_breaks_match(self, legacy_baseline):
        finding = apply_ratchet(
            _content("src/legacy.rs", 700, file_hash="def"), legacy_baseline, RatchetMode.STRICT
        )
        assert finding.is_failure


class TestEntries:
    def test_entry_for_content_and_structure(self):
        assert entry_for(_content("a.rs", 600)) == ContentEntry(600, "abc")
        assert entry_for(_structure("src", "dirs", 6, 5)) == StructureEntry("dirs", 6)

    def test_warnings_and_other_kinds_not_recorded(self):
        assert entry_for(_content("a.rs", 450, severity=Severity.WARN)) is None
        assert entry_for(_structure("src/a", "depth", 5, 3)) is None
        assert entry_for(_structure("src/x.bak", "denied_file", 1, 0)) is None

    def test_build_keeps_one_entry_per_path(self):
        baseline = build_baseline([
            _structure("src", "files", 12, 10),
            _structure("src", "dirs", 6, 5),
            _content("src/big.rs", 600),
        ])
        assert baseline.files == {
            "src": StructureEntry("files", 12),
            "src/big.rs": ContentEntry(600, "abc"),
        }


class TestPersistence:
    def test_save_and_load(self, tmp_path):
        path = tmp_path / "baseline.json"
        baseline = Baseline(files={
            "src/big.rs": ContentEntry(600, "abc"),
            "src": StructureEntry("files", 12),
        })
        save_baseline(baseline, path)

        data = json.loads(path.read_text())
        assert data["version"] == 2
        assert data["files"]["src"] == {"type": "structure", "violation_type": "files", "count": 12}
        assert not (tmp_path / "baseline.json.tmp").exists()
        assert load_baseline(path).files == baseline.files

    def test_v1_migrates_to_content_entries(self, tmp_path):
        path = tmp_path / "baseline.json"
        path.write_text(json.dumps({"files": {"src\\old.rs": {"lines": 800, "hash": "h"}}}))
        assert load_baseline(path).files == {"src/old.rs": ContentEntry(800, "h")}

    def test_missing_file(self, tmp_path):
        with pytest.raises(BaselineError) as exc_info:
            load_baseline(tmp_path / "nope.json")
        assert exc_info.value.reason == "file not found"

    @pytest.mark.parametrize("payload", [
        "not json",
        json.dumps([1, 2]),
        json.dumps({"version": 3, "files": {}}),
        json.dumps({"version": 2, "files": {"a": {"type": "structure", "violation_type": "depth", "count": 1}}}),
        json.dumps({"version": 2, "files": {"a": {"type": "content"}}}),
    ])
    def test_malformed(self, tmp_path, payload):
        path = tmp_path / "baseline.json"
        path.write_text(payload)
        with pytest.raises(BaselineError):
            load_baseline(path)

    def test_save_into_missing_directory_cleans_up(self, tmp_path):
        path = tmp_path / "missing" / "baseline.json"
        with pytest.raises(BaselineError):
            save_baseline(Baseline(), path)
        assert not path.with_name("baseline.json.tmp").exists()

    def test_hash_file(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_bytes(b"hello")
        assert hash_file(path) == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"


class TestUpdateModes:
    @pytest.fixture
    def existing(self):
        return Baseline(files={
            "src/old.rs": ContentEntry(900, "h"),
            "legacy": StructureEntry("files", 30),
        })

    @pytest.fixture
    def findings(self):
        return [
            _content("src/old.rs", 950),
            _content("src/new.rs", 600),
            _structure("src", "files", 12, 10),
        ]

    def test_all_replaces(self, existing, findings):
        updated = update_baseline(existing, findings, BaselineUpdateMode.ALL)
        assert set(updated.files) == {"src/old.rs", "src/new.rs", "src"}
        assert updated.files["src/old.rs"].lines == 950

    def test_new_only_adds(self, existing, findings):
        updated = update_baseline(existing, findings, "new")
        assert updated.files["src/old.rs"].lines == 900
        assert set(updated.files) == {"src/old.rs", "src/new.rs", "src", "legacy"}

    def test_content_keeps_structure(self, existing, findings):
        updated = update_baseline(existing, findings, BaselineUpdateMode.CONTENT)
        assert set(updated.files) == {"legacy", "src/old.rs", "src/new.rs"}

    def test_structure_keeps_content(self, existing, findings):
        updated = update_baseline(existing, findings, BaselineUpdateMode.STRUCTURE)
        assert set(updated.files) == {"src/old.rs", "src"}

    def test_without_existing(self, findings):
        assert len(update_baseline(None, findings, BaselineUpdateMode.NEW)) == 3


class TestStaleAndTighten:
    def test_stale_entries(self):
        baseline = Baseline(files={
            "src/fixed.rs": ContentEntry(700, "h"),
            "src/still.rs": ContentEntry(700, "h"),
            "src/unchecked.rs": ContentEntry(700, "h"),
            "legacy": StructureEntry("files", 30),
        })
        findings = [
            _content("src/fixed.rs", 400, severity=Severity.OK),
            _content("src/still.rs", 650),
        ]
        checked = {"src/fixed.rs", "src/still.rs"}
        assert stale_entries(baseline, findings, checked) == ["legacy", "src/fixed.rs"]
        assert stale_entries(baseline, findings) == ["legacy", "src/fixed.rs", "src/unchecked.rs"]

    def test_tighten_lowers_counts_and_drops_fixed(self):
        baseline = Baseline(files={
            "src/fixed.rs": ContentEntry(700, "h"),
            "src/still.rs": ContentEntry(700, "h"),
            "src": StructureEntry("files", 30),
        })
        findings = [
            _content("src/fixed.rs", 10, severity=Severity.OK),
            _content("src/still.rs", 650, file_hash="new"),
            _structure("src", "files", 25, 10),
        ]
        tightened = tighten_baseline(baseline, findings)
        assert tightened.files == {
            "src/still.rs": ContentEntry(650, "new"),
            "src": StructureEntry("files", 25),
        }
