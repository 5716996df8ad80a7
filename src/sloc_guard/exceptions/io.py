"""File system and git exceptions."""

from pathlib import Path

from .base import SlocGuardError


class FileAccessError(SlocGuardError):
    """Raised when a file cannot be read."""

    error_type = "FileAccess"
    suggestion = "Check that the file exists and you have read permissions"

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class BaselineError(SlocGuardError):
    """Raised when the baseline file cannot be read or written."""

    error_type = "Io"
    suggestion = "Check file permissions and available disk space"

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Baseline error: {path}", details={"path": str(path), "reason": reason}
        )
        self.path = path
        self.reason = reason


class GitError(SlocGuardError):
    """Raised when diff mode cannot discover a repository or resolve a ref."""

    error_type = "Git"
    suggestion = "Ensure you are inside a git repository and the reference exists"

    def __init__(self, reason: str):
        super().__init__(f"Git error: {reason}", details={"reason": reason})
        self.reason = reason
