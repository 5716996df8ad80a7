"""Tests for split suggestions."""

from sloc_guard.languages import LanguageRegistry
from sloc_guard.suggestions import FunctionInfo, find_functions, generate_chunks, suggest_split

PYTHON = LanguageRegistry().for_path("a.py")


class TestFindFunctions:
    def test_boundaries(self):
        lines = ["import os", "def a():", "    pass", "", "class B:", "    def c(self):", "        pass"]
        functions = find_functions(lines, PYTHON)
        assert [(f.name, f.start_line, f.end_line) for f in functions] == [
            ("a", 2, 4),
            ("B", 5, 5),
            ("c", 6, 7),
        ]

    def test_language_without_patterns(self):
        from sloc_guard.languages import PLAIN_TEXT

        assert find_functions(["def a():"], PLAIN_TEXT) == []


class TestChunks:
    def test_greedy_packing(self):
        functions = [FunctionInfo("a", 1, 40), FunctionInfo("b", 41, 80), FunctionInfo("c", 81, 150)]
        chunks = generate_chunks("src/big.py", functions, 100)
        assert [c.functions for c in chunks] == [["a", "b"], ["c"]]
        assert chunks[0].suggested_name == "big_part1"
        assert chunks[1].suggested_name == "big_c"
        assert chunks[1].line_count == 70

    def test_oversized_function_stands_alone(self):
        functions = [FunctionInfo("huge", 1, 300), FunctionInfo("small", 301, 310)]
        chunks = generate_chunks("big.py", functions, 100)
        assert [c.functions for c in chunks] == [["huge"], ["small"]]

    def test_single_chunk_is_no_suggestion(self):
        assert generate_chunks("a.py", [FunctionInfo("a", 1, 10)], 100) == []
        assert generate_chunks("a.py", [], 100) == []

    def test_suggest_split_text(self):
        lines = ["def a():"] + ["    x = 1"] * 59 + ["def b():"] + ["    y = 2"] * 59
        (first, second) = suggest_split("pkg/mod.py", lines, PYTHON, 80)
        assert first == "Move a (lines 1-60, 60 lines) to mod_a"
        assert second == "Move b (lines 61-120, 60 lines) to mod_b"
        assert suggest_split("pkg/mod.py", lines, None, 80) == []
