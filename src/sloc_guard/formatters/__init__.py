"""Output formatters for sloc-guard."""

from .base import BaseFormatter
from .html_formatter import HtmlFormatter
from .json_formatter import JsonFormatter
from .markdown_formatter import MarkdownFormatter
from .sarif_formatter import SarifFormatter
from .stats_formatter import get_stats_formatter
from .text_formatter import TextFormatter

FORMATS = ("text", "json", "sarif", "markdown", "html")


def get_formatter(name: str, color: str = "auto", show_suggestions: bool = False) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "text", "json", "sarif", "markdown", "html"
        color: "auto", "always" or "never" (text output only)
        show_suggestions: Include split suggestions when present

    Returns:
        Formatter instance

    Raises:
        ValueError: If name is not recognized
    """
    formatters = {
        "text": TextFormatter,
        "json": JsonFormatter,
        "sarif": SarifFormatter,
        "markdown": MarkdownFormatter,
        "html": HtmlFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(sorted(formatters))}")
    return cls(color=color, show_suggestions=show_suggestions)


__all__ = [
    "FORMATS",
    "BaseFormatter",
    "HtmlFormatter",
    "JsonFormatter",
    "MarkdownFormatter",
    "SarifFormatter",
    "TextFormatter",
    "get_formatter",
    "get_stats_formatter",
]
