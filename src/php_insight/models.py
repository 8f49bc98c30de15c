"""Data models for findings and analysis results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"

    @classmethod
    def parse(cls, value: str | Severity) -> Severity:
        """Lenient conversion used for external tool output."""
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.INFO


@dataclass(frozen=True)
class Finding:
    """One reported problem.

    Created by exactly one analyzer invocation and never mutated afterwards;
    ``refactor_info`` is exposed through a read-only mapping and takes no part
    in equality or hashing.
    """

    type: str  # "duplicate_method", "sql_injection_risk", ...
    severity: Severity
    message: str
    file_path: str
    line: int  # 1-based
    end_line: Optional[int] = None
    suggestion: Optional[str] = None
    refactor_info: Optional[Mapping[str, Any]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity(self.severity))
        if self.line < 1:
            raise ValueError(f"line must be >= 1, got {self.line}")
        if self.end_line is not None and self.end_line < self.line:
            raise ValueError(f"end_line {self.end_line} is before line {self.line}")
        if self.refactor_info is not None and not isinstance(self.refactor_info, MappingProxyType):
            object.__setattr__(self, "refactor_info", MappingProxyType(dict(self.refactor_info)))

    def to_dict(self) -> dict[str, Any]:
        """JSON shape consumed by reporters (camelCase keys, optional keys omitted)."""
        data: dict[str, Any] = {
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "filePath": self.file_path,
            "line": self.line,
        }
        if self.end_line is not None:
            data["endLine"] = self.end_line
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        if self.refactor_info is not None:
            data["refactorInfo"] = _plain(self.refactor_info)
        return data


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class Statistics:
    total_issues: int = 0
    by_type: Mapping[str, int] = field(default_factory=dict)
    by_severity: Mapping[Severity, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalIssues": self.total_issues,
            "byType": dict(self.by_type),
            "bySeverity": {severity.value: count for severity, count in self.by_severity.items()},
        }


@dataclass(frozen=True)
class AnalysisResult:
    total_files: int
    analyzed_files: int
    issues: tuple[Finding, ...]
    statistics: Statistics

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "analyzedFiles": self.analyzed_files,
            "issues": [issue.to_dict() for issue in self.issues],
            "statistics": self.statistics.to_dict(),
        }
