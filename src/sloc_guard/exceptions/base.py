"""Base exception for sloc-guard."""

from typing import Dict, Optional


class SlocGuardError(Exception):
    """Base exception for all sloc-guard errors."""

    error_type = "Error"
    suggestion: Optional[str] = None

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def detail(self) -> Optional[str]:
        if not self.details:
            return None
        return ", ".join(f"{k}={v}" for k, v in self.details.items())

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.detail})"
        return self.message


def render_error(err: SlocGuardError) -> Dict[str, Optional[str]]:
    """Structured record printed on stderr before exiting with code 2."""
    return {
        "error_type": err.error_type,
        "message": err.message,
        "detail": err.detail,
        "suggestion": err.suggestion,
    }
