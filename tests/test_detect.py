"""Tests for project type detection."""

from sloc_guard.detect import Detection, ProjectType, Subproject, detect_projects, render_detected_config


def _touch(root, *names):
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")


class TestDetectProjects:
    def test_marker_files(self, tmp_path):
        cases = {
            "Cargo.toml": ProjectType.RUST,
            "package.json": ProjectType.NODE,
            "go.mod": ProjectType.GO,
            "requirements.txt": ProjectType.PYTHON,
            "build.gradle.kts": ProjectType.JAVA,
            "App.csproj": ProjectType.CSHARP,
        }
        for marker, expected in cases.items():
            root = tmp_path / marker.replace(".", "_")
            _touch(root, marker)
            assert detect_projects(root).root is expected

    def test_rust_wins_over_node(self, tmp_path):
        _touch(tmp_path, "Cargo.toml", "package.json")
        assert detect_projects(tmp_path).root is ProjectType.RUST

    def test_no_markers(self, tmp_path):
        detection = detect_projects(tmp_path)
        assert detection.root is None
        assert not detection.is_monorepo
        assert detection.effective_type is ProjectType.UNKNOWN
        assert detection.preset is None

    def test_monorepo_subprojects(self, tmp_path):
        _touch(
            tmp_path,
            "api/go.mod",
            "web/package.json",
            "node_modules/dep/package.json",
            ".hidden/Cargo.toml",
            "docs/readme.md",
        )
        detection = detect_projects(tmp_path)
        assert detection.root is None
        assert detection.subprojects == [
            Subproject("api", ProjectType.GO),
            Subproject("web", ProjectType.NODE),
        ]
        assert detection.preset == "monorepo-base"
        assert detection.describe() == "Monorepo"


class TestRenderDetectedConfig:
    def test_rust_project(self):
        text = render_detected_config(Detection(root=ProjectType.RUST))
        assert 'extends = "rust-strict"' in text
        assert 'extensions = ["rs"]' in text
        assert "max_lines = 800" in text
        assert 'exclude = ["**/.git/**", "**/target/**"]' in text

    def test_explicit_preset_wins(self):
        text = render_detected_config(Detection(root=ProjectType.RUST), preset="monorepo-base")
        assert 'extends = "monorepo-base"' in text
        assert "rust-strict" not in text

    def test_java_has_no_preset(self):
        text = render_detected_config(Detection(root=ProjectType.JAVA))
        assert "extends" not in text
        assert 'extensions = ["java", "kt"]' in text

    def test_monorepo_rules_per_subproject(self):
        detection = Detection(subprojects=[Subproject("api", ProjectType.GO)])
        text = render_detected_config(detection)
        assert '[[content.rules]]\npattern = "api/**"\nmax_lines = 600' in text
        assert '"**/vendor/**"' in text
