"""Built-in presets usable as ``extends = "<name>"``."""

from typing import Dict

from ..exceptions import ConfigurationError

_COMMON_DENY = """
deny_files = ["*.bak", "*.tmp", "*.orig", ".DS_Store", "Thumbs.db"]
deny_extensions = [".exe", ".dll", ".so", ".dylib"]
"""

PRESETS: Dict[str, str] = {
    "rust-strict": """
version = "2"

[scanner]
exclude = [".git/**", "target/**", "vendor/**", "*.generated.rs"]

[content]
extensions = ["rs"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/tests/**/*.rs"
max_lines = 1000
reason = "Integration tests carry fixtures"

[[content.rules]]
pattern = "**/*_test{,s}.rs"
max_lines = 1000
reason = "Test modules carry fixtures"

[[content.rules]]
pattern = "**/benches/**/*.rs"
max_lines = 1500
reason = "Benchmarks may embed datasets"

[structure]
max_files = 20
max_dirs = 10
warn_threshold = 0.9
""" + _COMMON_DENY + """
[[structure.rules]]
scope = "tests/**"
max_files = 50
max_dirs = 15
reason = "Test directories hold many cases"
""",
    "node-strict": """
version = "2"

[scanner]
exclude = [".git/**", "node_modules/**", "dist/**", "build/**", "coverage/**", ".next/**"]

[content]
extensions = ["js", "jsx", "ts", "tsx", "mjs", "cjs"]
max_lines = 400
warn_threshold = 0.85

[[content.rules]]
pattern = "**/*.{test,spec}.{js,jsx,ts,tsx}"
max_lines = 800
reason = "Test files carry fixtures"

[[content.rules]]
pattern = "**/__tests__/**"
max_lines = 800
reason = "Test files carry fixtures"

[[content.rules]]
pattern = "**/*.stories.{js,jsx,ts,tsx}"
max_lines = 600
reason = "Stories enumerate variants"

[structure]
max_files = 20
max_dirs = 10
warn_threshold = 0.9
""" + _COMMON_DENY + """
[[structure.rules]]
scope = "**/__tests__"
max_files = 50
reason = "Test directories hold many cases"

[[structure.rules]]
scope = "src/components/**"
max_files = 40
reason = "Component directories group related files"
""",
    "python-strict": """
version = "2"

[scanner]
exclude = [
    ".git/**", "__pycache__/**", ".venv/**", "venv/**", ".tox/**", "*.egg-info/**",
    ".pytest_cache/**", ".mypy_cache/**", "build/**", "dist/**",
]

[content]
extensions = ["py", "pyi"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/test_*.py"
max_lines = 1000
reason = "Test modules carry fixtures"

[[content.rules]]
pattern = "**/conftest.py"
max_lines = 800
reason = "Shared fixtures"

[[content.rules]]
pattern = "**/migrations/**/*.py"
max_lines = 1500
reason = "Generated migrations"

[structure]
max_files = 20
max_dirs = 10
warn_threshold = 0.9
deny_dirs = ["__pycache__"]
""" + _COMMON_DENY + """
[[structure.rules]]
scope = "tests/**"
max_files = 50
max_dirs = 20
reason = "Test directories hold many cases"
""",
    "go-strict": """
version = "2"

[scanner]
exclude = [".git/**", "vendor/**", "bin/**", "dist/**", "testdata/**"]

[content]
extensions = ["go"]
max_lines = 600
warn_threshold = 0.85

[[content.rules]]
pattern = "**/*_test.go"
max_lines = 1000
reason = "Table-driven tests"

[[content.rules]]
pattern = "**/*.pb.go"
max_lines = 5000
reason = "Generated protobuf code"

[[content.rules]]
pattern = "**/cmd/**/*.go"
max_lines = 400
reason = "Entry points stay small"

[structure]
max_files = 20
max_dirs = 10
warn_threshold = 0.9
""" + _COMMON_DENY + """
[[structure.rules]]
scope = "internal/**"
max_files = 30
max_dirs = 20
reason = "Internal packages nest deeper"
""",
    "monorepo-base": """
version = "2"

[scanner]
exclude = [".git/**", "node_modules/**", "target/**", "vendor/**", "dist/**", "build/**"]

[content]
extensions = ["rs", "go", "py", "js", "jsx", "ts", "tsx", "java", "kt", "c", "cpp", "h"]
max_lines = 500
warn_threshold = 0.9

[structure]
max_files = 30
max_dirs = 15
max_depth = 8
""" + _COMMON_DENY + """
[[structure.rules]]
scope = "packages/*"
max_dirs = 50
reason = "Package roots hold many packages"
""",
}


def available_presets() -> list[str]:
    return sorted(PRESETS)


def load_preset(name: str) -> dict:
    """Parse a preset into a raw config table."""
    from .loader import parse_toml_text

    text = PRESETS.get(name)
    if text is None:
        raise ConfigurationError(
            f"Unknown preset: {name!r}",
            details={"available": ", ".join(available_presets())},
        )
    return parse_toml_text(text, f"preset:{name}")
