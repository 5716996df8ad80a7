"""Shared test fixtures for sloc-guard tests."""

import os
from pathlib import Path
from typing import Dict, Optional

import pytest


@pytest.fixture(autouse=True)
def isolated_env(tmp_path_factory, monkeypatch):
    """Keep the user-global config and SLOC_GUARD_* variables out of every test."""
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))
    for key in list(os.environ):
        if key.startswith("SLOC_GUARD_"):
            monkeypatch.delenv(key)


def _rust_lines(n: int, start: int = 0) -> str:
    return "".join(f"let x{i} = {i};\n" for i in range(start, start + n))


@pytest.fixture
def rust_lines():
    """``rust_lines(n)`` -> n lines of plain Rust code."""
    return _rust_lines


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A project root marked by an empty .git directory, used as cwd.

    Returns a builder: ``project({"src/a.rs": "..."}, config="...")``
    writes the files (and ``.sloc-guard.toml``) and returns the root.
    """
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)

    def build(files: Optional[Dict[str, str]] = None, config: Optional[str] = None) -> Path:
        for rel, text in (files or {}).items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        if config is not None:
            (tmp_path / ".sloc-guard.toml").write_text(config, encoding="utf-8")
        return tmp_path

    return build
