"""CROSS_FILE_DUPLICATION: near-identical methods in different files.

Severity: major

``prepare`` extracts method candidates from every file in the corpus,
buckets them by structural hash and compares pairs inside each bucket.
Each cross-file pair is reported once, on the file that sorts first.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Optional

from ..duplication import (
    MIN_LINES,
    SIMILARITY_THRESHOLD,
    DuplicatePair,
    MethodCandidate,
    extract_method_candidates,
    find_similar_pairs,
)
from ..exceptions import ParsingError
from ..logging_config import get_logger
from ..models import Finding, Severity
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree
    from ..scanning.treesitter_parser import PhpParser

logger = get_logger(__name__)


class CrossFileDuplicationDetector(Analyzer):
    """Corpus-wide duplicate method search."""

    name = "cross_file_duplication"

    def __init__(self, min_lines: int = MIN_LINES, threshold: float = SIMILARITY_THRESHOLD) -> None:
        self.min_lines = min_lines
        self.threshold = threshold
        self._corpus: Optional[CorpusSnapshot] = None
        self._pairs_by_file: dict[str, list[DuplicatePair[MethodCandidate]]] = {}

    def prepare(self, corpus: CorpusSnapshot, parser: PhpParser) -> None:
        candidates: list[MethodCandidate] = []
        for source in corpus.sources():
            try:
                tree = parser.parse(source.content, source.path)
            except ParsingError as e:
                logger.debug(f"Cross-file index skips {source.path}: {e.reason}")
                continue
            candidates.extend(extract_method_candidates(tree, self.min_lines))

        pairs_by_file: dict[str, list[DuplicatePair[MethodCandidate]]] = defaultdict(list)
        for pair in find_similar_pairs(candidates, self.threshold, bucketed=True):
            # same-file pairs belong to DuplicationDetector
            if pair.is_cross_file:
                pairs_by_file[pair.first.file_path].append(pair)

        self._pairs_by_file = dict(pairs_by_file)
        self._corpus = corpus
        logger.debug(
            f"Cross-file index: {len(candidates)} candidates, "
            f"{sum(len(p) for p in self._pairs_by_file.values())} duplicate pairs"
        )

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        if self._corpus is not corpus:
            logger.debug(f"Cross-file index not prepared for this corpus, skipping {file.path}")
            return []
        return [self._finding(pair) for pair in self._pairs_by_file.get(file.path, [])]

    @staticmethod
    def _finding(pair: DuplicatePair[MethodCandidate]) -> Finding:
        first, second = pair.first, pair.second
        return Finding(
            type="cross_file_duplication",
            severity=Severity.MAJOR,
            message=(
                f'Method "{first.name}" in {first.file_path}:{first.start_line} is '
                f'{pair.percent}% similar to "{second.name}" in '
                f"{second.file_path}:{second.start_line}"
            ),
            file_path=first.file_path,
            line=first.start_line,
            end_line=first.end_line,
            suggestion="Extract common logic into a shared Service, Trait, or Helper class",
            refactor_info={
                "method1": {"file": first.file_path, "name": first.name, "lines": first.lines},
                "method2": {"file": second.file_path, "name": second.name, "lines": second.lines},
                "similarity": pair.similarity.score,
            },
        )
