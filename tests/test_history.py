"""Tests for trend history and the line-count cache."""

import json

from sloc_guard.cache import StatsCache
from sloc_guard.counting import IgnoredFile, LineStats
from sloc_guard.history import HistoryEntry, load_history, record_entry


def _entry(ts, files, code):
    return HistoryEntry(timestamp=ts, total_files=files, code=code, comment=0, blank=0)


class TestHistory:
    def test_first_run_has_no_delta(self, tmp_path):
        path = tmp_path / "state" / "history.json"
        assert record_entry(path, _entry(1, 2, 100), max_entries=10) is None
        assert len(load_history(path)) == 1

    def test_delta_against_previous(self, tmp_path):
        path = tmp_path / "history.json"
        record_entry(path, _entry(1, 2, 100), max_entries=10)
        delta = record_entry(path, _entry(2, 3, 90), max_entries=10)
        assert (delta.files, delta.code, delta.previous_timestamp) == (1, -10, 1)
        assert delta.has_changes

    def test_trimmed_to_max_entries(self, tmp_path):
        path = tmp_path / "history.json"
        for ts in range(5):
            record_entry(path, _entry(ts, 1, ts), max_entries=3)
        assert [e.timestamp for e in load_history(path)] == [2, 3, 4]
        assert json.loads(path.read_text())["version"] == 1

    def test_unreadable_history_is_empty(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("{broken")
        assert load_history(path) == []


class TestStatsCache:
    def test_round_trip_and_invalidation(self, tmp_path):
        source = tmp_path / "a.rs"
        source.write_text("let a = 1;\n")
        cache = StatsCache(tmp_path / "cache", "cfg1")
        try:
            assert cache.get(source, "Rust") is None
            cache.set(source, "Rust", LineStats(code=1), "h1")
            assert cache.get(source, "Rust") == (LineStats(code=1), "h1")
            assert cache.get(source, "Python") is None
            assert (cache.hits, cache.misses) == (1, 2)
        finally:
            cache.close()

        other = StatsCache(tmp_path / "cache", "cfg2")
        try:
            assert other.get(source, "Rust") is None
        finally:
            other.close()

    def test_ignored_file(self, tmp_path):
        source = tmp_path / "gen.rs"
        source.write_text("x\n")
        cache = StatsCache(tmp_path / "cache", "cfg")
        try:
            cache.set(source, "Rust", IgnoredFile(total=40), "h")
            assert cache.get(source, "Rust") == (IgnoredFile(total=40), "h")
        finally:
            cache.close()

    def test_disabled(self, tmp_path):
        source = tmp_path / "a.rs"
        source.write_text("x\n")
        cache = StatsCache(tmp_path / "cache", "cfg", enabled=False)
        cache.set(source, "Rust", LineStats(code=1), "h")
        assert cache.get(source, "Rust") is None
        assert not (tmp_path / "cache").exists()
        cache.close()
