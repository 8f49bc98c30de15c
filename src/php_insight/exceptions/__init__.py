"""Exception hierarchy for PHP Insight."""

from .analysis import (
    AnalysisError,
    AnalyzerError,
    AnalyzerTimeoutError,
    FileAccessError,
    ParsingError,
    ToolUnavailableError,
)
from .base import PhpInsightError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)

__all__ = [
    "PhpInsightError",
    "AnalysisError",
    "AnalyzerError",
    "AnalyzerTimeoutError",
    "FileAccessError",
    "ParsingError",
    "ToolUnavailableError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
