"""Analyzer registry: ordered analyzers with per-analyzer error isolation."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Optional

from ..exceptions import AnalyzerError, InvalidConfigError
from ..logging_config import get_logger
from ..models import Finding
from .base import Analyzer

if TYPE_CHECKING:
    from ..config import AnalysisConfig
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree
    from ..scanning.treesitter_parser import PhpParser

logger = get_logger(__name__)


class AnalyzerRegistry:
    """Ordered collection of analyzers.

    ``run`` invokes every analyzer on a file in registration order. An
    exception raised by one analyzer is logged and contributes no findings;
    it never stops the remaining analyzers or the run.
    """

    def __init__(self, analyzers: Iterable[Analyzer] = ()) -> None:
        self._analyzers: list[Analyzer] = []
        for analyzer in analyzers:
            self.register(analyzer)

    def register(self, analyzer: Analyzer) -> None:
        if not isinstance(analyzer, Analyzer):
            raise TypeError(f"{analyzer!r} does not implement Analyzer")
        if analyzer.name in self.names:
            raise ValueError(f"Analyzer '{analyzer.name}' is already registered")
        self._analyzers.append(analyzer)

    @property
    def names(self) -> list[str]:
        return [analyzer.name for analyzer in self._analyzers]

    def __iter__(self) -> Iterator[Analyzer]:
        return iter(self._analyzers)

    def __len__(self) -> int:
        return len(self._analyzers)

    def prepare_all(self, corpus: CorpusSnapshot, parser: PhpParser) -> None:
        """Run every ``prepare`` hook. Must complete before any ``run`` call."""
        for analyzer in self._analyzers:
            try:
                analyzer.prepare(corpus, parser)
            except Exception as e:
                error = AnalyzerError(analyzer.name, "<corpus>", f"{type(e).__name__}: {e}")
                logger.warning(str(error))
                logger.debug("prepare traceback", exc_info=True)

    def run(self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot) -> list[Finding]:
        findings: list[Finding] = []
        for analyzer in self._analyzers:
            try:
                results = analyzer.analyze(file, tree, corpus)
            except Exception as e:
                error = AnalyzerError(analyzer.name, file.path, f"{type(e).__name__}: {e}")
                logger.warning(str(error))
                logger.debug("analyzer traceback", exc_info=True)
                continue
            if results:
                findings.extend(results)
        return findings


def get_default_analyzers(config: Optional[AnalysisConfig] = None) -> AnalyzerRegistry:
    """Default rule set, in execution order.

    ``config.analyzers`` narrows the set to the named analyzers; the order
    stays the default one.

    Raises:
        InvalidConfigError: If ``config.analyzers`` names an unknown analyzer
    """
    from ..config import DEFAULT_THRESHOLDS
    from .architecture import ArchitectureAnalyzer
    from .class_conflicts import ClassConflictAnalyzer
    from .code_smell import CodeSmellDetector
    from .cross_file import CrossFileDuplicationDetector
    from .docblock import DocBlockAnalyzer
    from .duplication import DuplicationDetector
    from .logic import LogicAnalyzer
    from .method_size import MethodSizeAnalyzer
    from .n_plus_one import NPlusOneDetector
    from .performance import PerformanceAnalyzer
    from .security import SecurityAnalyzer
    from .trait_scope import TraitScopeAnalyzer
    from .type_checker import TypeChecker

    thresholds = config.thresholds if config is not None else DEFAULT_THRESHOLDS
    analyzers: list[Analyzer] = [
        MethodSizeAnalyzer(max_lines=thresholds.max_method_lines),
        LogicAnalyzer(
            max_nesting_depth=thresholds.max_nesting_depth,
            max_complexity=thresholds.max_complexity,
        ),
        TypeChecker(),
        DocBlockAnalyzer(),
        ArchitectureAnalyzer(),
        TraitScopeAnalyzer(),
        SecurityAnalyzer(),
        PerformanceAnalyzer(),
        NPlusOneDetector(),
        CodeSmellDetector(max_parameters=thresholds.max_parameters),
        ClassConflictAnalyzer(
            method_similarity=thresholds.class_method_similarity,
            max_chain_length=thresholds.max_chain_length,
            min_lines=thresholds.min_duplicate_lines,
        ),
        DuplicationDetector(
            min_lines=thresholds.min_duplicate_lines,
            threshold=thresholds.similarity_threshold,
        ),
        CrossFileDuplicationDetector(
            min_lines=thresholds.min_duplicate_lines,
            threshold=thresholds.similarity_threshold,
        ),
    ]

    selected = config.analyzers if config is not None else []
    if selected:
        known = [analyzer.name for analyzer in analyzers]
        unknown = sorted(set(selected) - set(known))
        if unknown:
            raise InvalidConfigError(
                "analyzers", ", ".join(unknown), f"unknown analyzer; choose from {', '.join(known)}"
            )
        analyzers = [analyzer for analyzer in analyzers if analyzer.name in selected]
    return AnalyzerRegistry(analyzers)
