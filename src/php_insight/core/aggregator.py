"""Aggregation of findings into an ``AnalysisResult``.

``aggregate`` is a pure fold over the findings: it keeps no state between
calls, so two aggregations of the same input are equal.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from ..models import AnalysisResult, Finding, Severity, Statistics


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Deterministic order: file path, then line, then finding type."""
    return sorted(findings, key=lambda f: (f.file_path, f.line, f.type))


def compute_statistics(issues: Iterable[Finding]) -> Statistics:
    issues = list(issues)
    by_type = Counter(issue.type for issue in issues)
    severity_counts = Counter(issue.severity for issue in issues)
    # every severity is present, zero when unused
    by_severity = {severity: severity_counts.get(severity, 0) for severity in Severity}
    return Statistics(
        total_issues=len(issues),
        by_type=dict(sorted(by_type.items())),
        by_severity=by_severity,
    )


def aggregate(issues: Iterable[Finding], total_files: int, analyzed_files: int) -> AnalysisResult:
    """Fold findings and file counts into a result.

    Raises:
        ValueError: If ``analyzed_files`` is negative or exceeds ``total_files``
    """
    if analyzed_files < 0 or analyzed_files > total_files:
        raise ValueError(
            f"analyzed_files ({analyzed_files}) must be between 0 and total_files ({total_files})"
        )
    issues = tuple(issues)
    return AnalysisResult(
        total_files=total_files,
        analyzed_files=analyzed_files,
        issues=issues,
        statistics=compute_statistics(issues),
    )
