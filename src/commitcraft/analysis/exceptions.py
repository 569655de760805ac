"""Exceptions for diff parsing and analysis."""


class AnalysisError(Exception):
    """Base exception for all analysis operations."""


class ParseError(AnalysisError):
    """Raised when a single hunk cannot be parsed; scoped to one file."""

    def __init__(self, message: str, file_path: str | None = None) -> None:
        super().__init__(message)
        self.file_path = file_path
