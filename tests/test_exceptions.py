"""Tests for the exception hierarchy."""

from php_insight.exceptions import (
    AnalysisError,
    AnalyzerError,
    ConfigurationError,
    FileAccessError,
    InvalidConfigError,
    InvalidPathError,
    ParsingError,
    PhpInsightError,
    ToolUnavailableError,
)


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(ParsingError, AnalysisError)
        assert issubclass(AnalyzerError, AnalysisError)
        assert issubclass(ToolUnavailableError, AnalysisError)
        assert issubclass(InvalidPathError, ConfigurationError)
        assert issubclass(AnalysisError, PhpInsightError)
        assert issubclass(ConfigurationError, PhpInsightError)

    def test_str_includes_details(self):
        error = FileAccessError("app/A.php", "not found")
        assert str(error) == "Cannot access file: app/A.php (filepath=app/A.php, reason=not found)"
        assert error.reason == "not found"

    def test_without_details(self):
        assert str(PhpInsightError("boom")) == "boom"

    def test_analyzer_error_fields(self):
        error = AnalyzerError("security", "a.php", "KeyError: 'x'")
        assert error.analyzer == "security"
        assert error.details["reason"] == "KeyError: 'x'"

    def test_invalid_config_error(self):
        error = InvalidConfigError("workers", 0, "must be at least 1")
        assert error.details == {"key": "workers", "value": "0", "reason": "must be at least 1"}
