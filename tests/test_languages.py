"""Tests for the language registry."""

from sloc_guard.languages import (
    BUILTIN_LANGUAGES,
    LanguageRegistry,
    custom_language,
    extension_of,
)


class TestBuiltins:
    def test_required_languages_present(self):
        names = LanguageRegistry().names()
        for expected in ("Rust", "C", "C++", "Go", "Python", "JavaScript", "TypeScript", "Java",
                         "Kotlin", "Swift", "Ruby", "Lua", "PHP", "Shell", "SQL", "HTML", "CSS",
                         "YAML", "TOML", "Markdown"):
            assert expected in names

    def test_rust_and_swift_nest_block_comments(self):
        registry = LanguageRegistry()
        for ext in ("rs", "swift"):
            assert all(block.nesting for block in registry.get(ext).syntax.blocks)
        assert registry.get("rs").raw_strings

    def test_ruby_block_at_line_start(self):
        (block,) = LanguageRegistry().get("rb").syntax.blocks
        assert (block.start, block.end, block.at_line_start) == ("=begin", "=end", True)

    def test_unique_names(self):
        names = [lang.name for lang in BUILTIN_LANGUAGES]
        assert len(names) == len(set(names))


class TestLookup:
    def test_extension_case_insensitive(self):
        registry = LanguageRegistry()
        assert registry.for_path("src/MAIN.RS").name == "Rust"
        assert registry.get(".Py").name == "Python"

    def test_filename_lookup(self):
        assert LanguageRegistry().for_path("docker/Dockerfile").name == "Dockerfile"

    def test_unknown(self):
        assert LanguageRegistry().for_path("notes.xyz") is None

    def test_extension_of(self):
        assert extension_of("a/b.TAR.GZ") == "gz"
        assert extension_of("Makefile") is None


class TestCustomLanguages:
    def test_user_language_wins_and_reports_collision(self):
        custom = custom_language("MyRust", [".rs", "rsx"], ["#"], [["<#", "#>"]])
        registry, overrides = LanguageRegistry.with_custom([custom])
        assert registry.get("rs").name == "MyRust"
        assert registry.get("rsx").name == "MyRust"
        assert overrides == [("rs", "Rust", "MyRust")]

    def test_custom_syntax(self):
        lang = custom_language("Cfg", ["cfg"], [";"], [["/*", "*/"]])
        assert lang.syntax.single_line == (";",)
        assert lang.syntax.blocks[0].start == "/*"
        assert not lang.syntax.blocks[0].nesting
