"""Analysis-related exceptions: file access, parsing, analyzer and tool failures."""

from pathlib import Path
from typing import Union

from .base import PhpInsightError

PathLike = Union[str, Path]


class AnalysisError(PhpInsightError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: PathLike, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(AnalysisError):
    """Raised when file content cannot be parsed."""

    def __init__(self, filepath: PathLike, reason: str, language: str = "php"):
        super().__init__(
            f"Failed to parse {language} file: {filepath}",
            details={"filepath": str(filepath), "language": language, "reason": reason},
        )
        self.filepath = filepath
        self.language = language
        self.reason = reason


class AnalyzerError(AnalysisError):
    """Raised when a single analyzer fails on a single file.

    The registry catches the underlying exception, wraps it in this type for
    logging, and moves on to the next analyzer.
    """

    def __init__(self, analyzer: str, filepath: PathLike, reason: str):
        super().__init__(
            f"Analyzer '{analyzer}' failed on {filepath}",
            details={"analyzer": analyzer, "filepath": str(filepath), "reason": reason},
        )
        self.analyzer = analyzer
        self.filepath = filepath
        self.reason = reason


class AnalyzerTimeoutError(AnalysisError):
    """Raised when analysis of one file exceeds its time limit."""

    def __init__(self, filepath: PathLike, timeout: float):
        super().__init__(
            f"Analysis of {filepath} exceeded {timeout}s timeout",
            details={"filepath": str(filepath), "timeout": str(timeout)},
        )
        self.filepath = filepath
        self.timeout = timeout


class ToolUnavailableError(AnalysisError):
    """Raised when an external coding-standard tool is missing or broken."""

    def __init__(self, tool: str, reason: str):
        super().__init__(
            f"External tool unavailable: {tool}",
            details={"tool": tool, "reason": reason},
        )
        self.tool = tool
        self.reason = reason
