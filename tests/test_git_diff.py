"""Tests for diff-mode changed file discovery."""

import shutil
import subprocess

import pytest

from sloc_guard.exceptions import GitError
from sloc_guard.git_diff import changed_files, parse_diff_spec

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class TestParseDiffSpec:
    def test_single_ref(self):
        assert parse_diff_spec("origin/main") == ["origin/main"]

    def test_range(self):
        assert parse_diff_spec("v1.0..v1.1") == ["v1.0", "v1.1"]
        assert parse_diff_spec("main..") == ["main", "HEAD"]

    @pytest.mark.parametrize("spec", ["", "   ", "a...b"])
    def test_rejected(self, spec):
        with pytest.raises(GitError):
            parse_diff_spec(spec)


def _git(repo, *args):
    subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True)


@pytest.fixture
def repo(tmp_path):
    _git(tmp_path, "init", "-q")
    _git(tmp_path, "config", "user.email", "dev@example.com")
    _git(tmp_path, "config", "user.name", "dev")
    (tmp_path / "a.rs").write_text("let a = 1;\n")
    (tmp_path / "b.rs").write_text("let b = 1;\n")
    _git(tmp_path, "add", ".")
    _git(tmp_path, "commit", "-q", "-m", "initial")
    return tmp_path


@needs_git
class TestChangedFiles:
    def test_working_tree_against_head(self, repo):
        (repo / "a.rs").write_text("let a = 2;\n")
        (repo / "src").mkdir()
        (repo / "src" / "new.rs").write_text("let n = 1;\n")
        assert changed_files(repo, "HEAD") == {"a.rs", "src/new.rs"}

    def test_commit_range(self, repo):
        (repo / "b.rs").write_text("let b = 2;\n")
        _git(repo, "commit", "-q", "-am", "change b")
        assert changed_files(repo, "HEAD~1..HEAD") == {"b.rs"}

    def test_paths_relative_to_subdirectory_root(self, repo):
        (repo / "pkg").mkdir()
        (repo / "pkg" / "x.rs").write_text("let x = 1;\n")
        (repo / "a.rs").write_text("let a = 3;\n")
        assert changed_files(repo / "pkg", "HEAD") == {"x.rs"}

    def test_unknown_ref(self, repo):
        with pytest.raises(GitError, match="cannot resolve reference"):
            changed_files(repo, "no-such-branch")
