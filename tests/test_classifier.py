"""Tests for the streaming line classifier and inline directives."""

import hashlib
import io

import pytest

from sloc_guard.counting import (
    Directive,
    DirectiveKind,
    IgnoredFile,
    LineStats,
    count,
    count_file,
    count_stream,
    parse_directive,
)
from sloc_guard.languages import LanguageRegistry

REGISTRY = LanguageRegistry()
RUST = REGISTRY.get("rs")
PYTHON = REGISTRY.get("py")
GO = REGISTRY.get("go")
RUBY = REGISTRY.get("rb")
LUA = REGISTRY.get("lua")
JS = REGISTRY.get("js")


class TestRustClassification:
    def test_nested_block_comment_closes_fully(self):
        source = "/* a /* b */ c */ let x = 1;\nlet y = 2;\n"
        assert count(source, RUST) == LineStats(code=2, comment=0, blank=0)

    def test_nested_block_needs_both_closers(self):
        source = "/* a /* b */\nstill comment\n*/\nlet y = 2;\n"
        assert count(source, RUST) == LineStats(code=1, comment=3)

    def test_glob_inside_string_is_code(self):
        assert count('let p = "src/generated/**";\n', RUST) == LineStats(code=1)

    def test_comment_marker_inside_string(self):
        assert count('let url = "http://example.com"; // trailing\n', RUST) == LineStats(code=1)

    def test_raw_string_hides_block_opener(self):
        source = 'let s = r#"/* not a comment"#;\nlet t = 1;\n'
        assert count(source, RUST) == LineStats(code=2)

    def test_raw_string_spans_lines(self):
        source = 'let s = r##"first\n"# still inside\n"##;\n// done\n'
        assert count(source, RUST) == LineStats(code=3, comment=1)

    def test_lifetime_is_not_a_char_literal(self):
        source = "fn f<'a>(x: &'a str) -> &'a str { x } // c\nlet c = '/';\n"
        assert count(source, RUST) == LineStats(code=2)

    def test_doc_comments(self):
        source = "/// docs\n//! inner\nfn main() {}\n"
        assert count(source, RUST) == LineStats(code=1, comment=2)

    def test_code_then_block_comment_is_code(self):
        source = "let a = 1; /* start\nend */\n"
        assert count(source, RUST) == LineStats(code=1, comment=1)

    def test_unterminated_block_runs_to_eof(self):
        source = "/* open\nlet x = 1;\nlet y = 2;\n"
        assert count(source, RUST) == LineStats(comment=3)


class TestOtherLanguages:
    def test_python_docstring_is_comment(self):
        source = 'def f():\n    """Doc\n    more\n    """\n    return 1  # note\n'
        assert count(source, PYTHON) == LineStats(code=2, comment=3)

    def test_python_hash_inside_string(self):
        assert count('x = "#not a comment"\n', PYTHON) == LineStats(code=1)

    def test_ruby_begin_end_at_line_start(self):
        source = "=begin\nputs 1\n=end\nputs 2\n"
        assert count(source, RUBY) == LineStats(code=1, comment=3)

    def test_ruby_begin_mid_line_is_code(self):
        assert count("x = 1 =begin\nputs 2\n", RUBY) == LineStats(code=2)

    def test_ruby_marker_must_stand_alone(self):
        assert count("=beginning\nputs 2\n", RUBY) == LineStats(code=2)
        source = "=begin note\nputs 1\n=ending\n=end\nputs 2\n"
        assert count(source, RUBY) == LineStats(code=1, comment=4)

    def test_lua_long_bracket_level(self):
        source = "--[==[\nfoo ]] still\n]==]\nprint(1)\n"
        assert count(source, LUA) == LineStats(code=1, comment=3)

    def test_go_backtick_string_spans_lines(self):
        source = "s := `a\n/* b\n`\n"
        assert count(source, GO) == LineStats(code=3)

    def test_js_template_literal(self):
        source = "const t = `\n// inside\n`;\n"
        assert count(source, JS) == LineStats(code=3)

    def test_go_backslash_is_literal_in_backticks(self):
        source = "x := `C:\\`\n// comment\n"
        assert count(source, GO) == LineStats(code=1, comment=1)

    def test_js_template_escaped_backtick_stays_open(self):
        source = "const t = `a\\`\n// inside\n`;\n"
        assert count(source, JS) == LineStats(code=3)


class TestLineSources:
    def test_blank_lines_and_crlf(self):
        assert count("let a = 1;\r\n\r\n   \r\n", RUST) == LineStats(code=1, blank=2)

    def test_no_trailing_newline(self):
        assert count("let a = 1;\nlet b = 2;", RUST) == LineStats(code=2)

    def test_empty_source(self):
        assert count("", RUST) == LineStats()

    def test_invalid_utf8_is_replaced(self):
        assert count(b"let a = 1;\n\xff\xfe\n", RUST) == LineStats(code=2)

    def test_stream_matches_in_memory(self, rust_lines):
        source = ("// header\n\n" + rust_lines(50)).encode()
        streamed = count_stream(io.BytesIO(source), RUST, chunk_size=7)
        assert streamed == count(source, RUST)

    def test_count_file_returns_sha256(self, tmp_path):
        path = tmp_path / "a.rs"
        data = b"let a = 1;\n// c\n"
        path.write_bytes(data)
        result, digest = count_file(path, RUST)
        assert result == LineStats(code=1, comment=1)
        assert digest == hashlib.sha256(data).hexdigest()

    def test_count_file_missing_raises(self, tmp_path):
        with pytest.raises(OSError):
            count_file(tmp_path / "missing.rs", RUST)


class TestDirectives:
    def test_ignore_next(self):
        source = "// sloc-guard:ignore-next 2\nlet a = 1;\nlet b = 2;\nlet c = 3;\n"
        assert count(source, RUST) == LineStats(code=1, comment=1, ignored=2)

    def test_ignore_range(self):
        source = (
            "// sloc-guard:ignore-start\n"
            "let a = 1;\n"
            "\n"
            "// sloc-guard:ignore-end\n"
            "let b = 2;\n"
        )
        assert count(source, RUST) == LineStats(code=1, comment=2, ignored=2)

    def test_unclosed_range_runs_to_eof(self):
        source = "# sloc-guard:ignore-start\nx = 1\ny = 2\n"
        assert count(source, PYTHON) == LineStats(comment=1, ignored=2)

    def test_ignore_file_in_header(self, rust_lines):
        source = "// sloc-guard:ignore-file\n" + rust_lines(20)
        assert count(source, RUST) == IgnoredFile(total=21)

    def test_ignore_file_after_window_is_plain_comment(self, rust_lines):
        source = rust_lines(10) + "// sloc-guard:ignore-file\n"
        assert count(source, RUST) == LineStats(code=10, comment=1)

    def test_ignore_file_in_block_comment_does_not_count(self):
        source = "/* sloc-guard:ignore-file */\nlet a = 1;\n"
        assert count(source, RUST) == LineStats(code=1, comment=1)

    def test_malformed_ignore_next_is_a_comment(self):
        source = "// sloc-guard:ignore-next many\nlet a = 1;\n"
        assert count(source, RUST) == LineStats(code=1, comment=1)

    def test_parse_directive(self):
        assert parse_directive(" sloc-guard:ignore-next 3") == Directive(DirectiveKind.IGNORE_NEXT, 3)
        assert parse_directive("sloc-guard:ignore-start") == Directive(DirectiveKind.IGNORE_START)
        assert parse_directive("sloc-guard:ignore-ending") is None
        assert parse_directive("todo: sloc-guard:ignore-file") is None
