"""Tests for glob compilation and path helpers."""

import pytest

from sloc_guard.exceptions import InvalidPatternError
from sloc_guard.matching import (
    Glob,
    GlobSet,
    normalize_path,
    pattern_base_depth,
    suffix_matches,
)


class TestNormalizePath:
    def test_strips_dot_prefix_and_trailing_slash(self):
        assert normalize_path("./src//lib.rs/") == "src/lib.rs"

    def test_folds_backslashes(self):
        assert normalize_path("src\\mod\\a.rs") == "src/mod/a.rs"

    def test_dot_is_root(self):
        assert normalize_path(".") == ""


class TestSuffixMatches:
    def test_whole_component_suffix(self):
        assert suffix_matches("any/prefix/src/lib.rs", "src/lib.rs")

    def test_partial_component_does_not_match(self):
        assert not suffix_matches("src/my_lib.rs", "lib.rs")
        assert not suffix_matches("src/my_lib.rs", "src/lib.rs")

    def test_exact_path(self):
        assert suffix_matches("legacy", "legacy")

    def test_longer_suffix_never_matches(self):
        assert not suffix_matches("lib.rs", "src/lib.rs")

    def test_empty_suffix(self):
        assert not suffix_matches("src/lib.rs", "")

    def test_separators_folded(self):
        assert suffix_matches("src\\modules\\legacy", "modules/legacy")


class TestGlob:
    def test_double_star_matches_zero_components(self):
        glob = Glob("**/*.rs")
        assert glob.matches("main.rs")
        assert glob.matches("src/deep/nested/main.rs")
        assert not glob.matches("main.go")

    def test_trailing_double_star(self):
        glob = Glob("vendor/**")
        assert glob.matches("vendor/a/b.c")
        assert glob.matches_dir("vendor")
        assert not glob.matches("vendors/a.c")

    def test_alternation(self):
        glob = Glob("**/*.{test,spec}.ts")
        assert glob.matches("src/a.test.ts")
        assert glob.matches("src/a.spec.ts")
        assert not glob.matches("src/a.ts")

    def test_character_class(self):
        assert Glob("v[0-9].txt").matches("v1.txt")
        assert not Glob("v[!0-9].txt").matches("v1.txt")

    def test_question_mark(self):
        assert Glob("a?.rs").matches("ab.rs")
        assert not Glob("a?.rs").matches("abc.rs")

    def test_case_sensitive(self):
        assert not Glob("Src/*.rs").matches("src/a.rs")

    def test_dot_prefix_in_path_ignored(self):
        assert Glob("src/*.rs").matches("./src/a.rs")

    @pytest.mark.parametrize("pattern", ["src/[abc", "{a,b", "a}", "{a,{b,c}}"])
    def test_invalid_patterns(self, pattern):
        with pytest.raises(InvalidPatternError):
            Glob(pattern)


class TestGlobSet:
    def test_first_match_in_order(self):
        globs = GlobSet(["*.txt", "docs/**", "**/*.md"])
        assert globs.first_match("docs/readme.md") == "docs/**"
        assert globs.first_match("src/main.rs") is None

    def test_empty_set_is_falsy(self):
        assert not GlobSet([])
        assert GlobSet(["*"])


class TestPatternBaseDepth:
    def test_literal_prefix(self):
        assert pattern_base_depth("src/components/**") == 2

    def test_leading_wildcard(self):
        assert pattern_base_depth("**/tests") == 0

    def test_wildcard_in_middle(self):
        assert pattern_base_depth("packages/*/src") == 1
