"""DUPLICATION: similar methods and code blocks within one file.

Finding types:
    duplicate_method      major  two declarations whose normalized token sets
                                 reach the similarity threshold
    duplicate_code_block  minor  two non-overlapping multi-line statements

A file's own candidates are few, so every pair is compared; the corpus-wide
search lives in ``cross_file``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..duplication import (
    MIN_LINES,
    SIMILARITY_THRESHOLD,
    CodeBlock,
    DuplicatePair,
    MethodCandidate,
    extract_code_blocks,
    extract_method_candidates,
    find_duplicate_blocks,
    find_similar_pairs,
)
from ..models import Finding, Severity
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree


def _within(block: CodeBlock, method: MethodCandidate) -> bool:
    return method.start_line <= block.start_line and block.end_line <= method.end_line


def _covered(pair: DuplicatePair[CodeBlock], methods: list[DuplicatePair[MethodCandidate]]) -> bool:
    """True when the two blocks sit inside the two methods of a reported pair."""
    a, b = pair.first, pair.second
    for method_pair in methods:
        m1, m2 = method_pair.first, method_pair.second
        if (_within(a, m1) and _within(b, m2)) or (_within(a, m2) and _within(b, m1)):
            return True
    return False


class DuplicationDetector(Analyzer):
    """Within-file method and block duplication."""

    name = "duplication"

    def __init__(self, min_lines: int = MIN_LINES, threshold: float = SIMILARITY_THRESHOLD) -> None:
        self.min_lines = min_lines
        self.threshold = threshold

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        candidates = extract_method_candidates(tree, self.min_lines)
        method_pairs = find_similar_pairs(candidates, self.threshold, bucketed=False)
        findings = [self._method_finding(file.path, pair) for pair in method_pairs]

        blocks = extract_code_blocks(tree, file.content, self.min_lines)
        for pair in find_duplicate_blocks(blocks, self.threshold):
            if _covered(pair, method_pairs):
                continue
            findings.append(self._block_finding(file.path, pair))
        return findings

    @staticmethod
    def _method_finding(file_path: str, pair: DuplicatePair[MethodCandidate]) -> Finding:
        first, second = pair.first, pair.second
        return Finding(
            type="duplicate_method",
            severity=Severity.MAJOR,
            message=f'Methods "{first.name}" and "{second.name}" are {pair.percent}% similar',
            file_path=file_path,
            line=first.start_line,
            end_line=first.end_line,
            suggestion="Extract common logic into a shared private method or trait",
            refactor_info={
                "method1": first.name,
                "method2": second.name,
                "similarity": pair.similarity.score,
                "lines1": first.lines,
                "lines2": second.lines,
            },
        )

    @staticmethod
    def _block_finding(file_path: str, pair: DuplicatePair[CodeBlock]) -> Finding:
        first, second = pair.first, pair.second
        return Finding(
            type="duplicate_code_block",
            severity=Severity.MINOR,
            message=(
                f"Code block at lines {first.lines} is {pair.percent}% similar to "
                f"lines {second.lines}"
            ),
            file_path=file_path,
            line=first.start_line,
            end_line=first.end_line,
            suggestion="Extract duplicate code into a separate method",
            refactor_info={
                "block1Lines": first.lines,
                "block2Lines": second.lines,
                "similarity": pair.similarity.score,
                "linesCount": first.line_count,
            },
        )
