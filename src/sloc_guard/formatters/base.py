"""Base formatter interface for sloc-guard output rendering."""

from abc import ABC, abstractmethod

from ..models import CheckReport


class BaseFormatter(ABC):
    """Abstract base class for check report formatters."""

    def __init__(self, color: str = "auto", show_suggestions: bool = False):
        self.color = color
        self.show_suggestions = show_suggestions

    def render(self, report: CheckReport) -> None:
        """Write the report to stdout."""
        print(self.format(report))

    @abstractmethod
    def format(self, report: CheckReport) -> str:
        """Return formatted string representation of the report."""
