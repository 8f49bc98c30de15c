"""METHOD_SIZE: methods and functions that are too long.

Severity: major
Scope: one file

Line count is inclusive (a declaration on lines 10..25 counts 16 lines).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import Finding, Severity
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree


class MethodSizeAnalyzer(Analyzer):
    """Flags method and function declarations longer than ``max_lines``."""

    name = "method_size"

    def __init__(self, max_lines: int = 15) -> None:
        self.max_lines = max_lines

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        findings: list[Finding] = []
        for node in tree.callables():
            lines_count = node.end_line - node.start_line + 1
            if lines_count <= self.max_lines:
                continue

            method_name = node.name
            findings.append(
                Finding(
                    type=self.name,
                    severity=Severity.MAJOR,
                    message=(
                        f'Method "{method_name}" is too long ({lines_count} lines, '
                        f"max recommended: {self.max_lines})"
                    ),
                    file_path=file.path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion=(
                        "Consider breaking down this method into smaller, focused "
                        "methods following Single Responsibility Principle"
                    ),
                    refactor_info={
                        "methodName": method_name,
                        "startLine": node.start_line,
                        "endLine": node.end_line,
                        "linesCount": lines_count,
                        "suggestedLines": self.max_lines,
                    },
                )
            )
        return findings
