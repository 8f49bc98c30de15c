"""AnalysisPipeline: read, snapshot, parse, analyze, aggregate.

Run order:
    1. Read every path (unreadable files are logged and skipped)
    2. Build the CorpusSnapshot, then call every analyzer's prepare hook
    3. Parse and analyze each file on a bounded thread pool with per-file deadlines
    4. Optionally run the coding-standard tools on each analyzed file
    5. Aggregate

Nothing below step 2 starts before the snapshot is complete.
"""

from __future__ import annotations

import concurrent.futures
import dataclasses
import threading
import time
from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from ..analyzers.registry import AnalyzerRegistry, get_default_analyzers
from ..config import AnalysisConfig
from ..exceptions import AnalyzerTimeoutError, FileAccessError, ParsingError
from ..linters.coding_standard import CodingStandardLinter
from ..logging_config import get_logger
from ..models import AnalysisResult, Finding
from ..scanning.models import CorpusSnapshot, SourceFile
from ..scanning.reader import discover_php_files, read_source_file
from ..scanning.treesitter_parser import PhpParser
from .aggregator import aggregate

ProgressCallback = Optional[Callable[[str], None]]

logger = get_logger(__name__)

# How often the scheduler wakes to check per-file deadlines, in seconds
POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class FileOutcome:
    """Result of analyzing one file.

    ``analyzed`` is False when the file failed to parse or timed out.
    """

    path: str
    analyzed: bool
    findings: tuple[Finding, ...] = ()


class AnalysisPipeline:
    """Runs the analyzer registry over a set of PHP files.

    Args:
        config: Analysis configuration (defaults if None)
        registry: Analyzers to run (the default rule set if None)
        linter: Coding-standard bridge; created from ``config`` when
            ``enable_linters`` is set and no linter is given
        parser_factory: Builds one PhpParser per thread
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        registry: Optional[AnalyzerRegistry] = None,
        linter: Optional[CodingStandardLinter] = None,
        parser_factory: Optional[Callable[[], PhpParser]] = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self.registry = registry if registry is not None else get_default_analyzers(self.config)
        if linter is None and self.config.enable_linters:
            linter = CodingStandardLinter(self.config)
        self.linter = linter
        self._parser_factory = parser_factory or self._default_parser
        self._local = threading.local()

    def _default_parser(self) -> PhpParser:
        return PhpParser(tolerate_syntax_errors=self.config.tolerate_syntax_errors)

    def _parser(self) -> PhpParser:
        """This thread's parser; tree-sitter parsers are not shared between threads."""
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = self._parser_factory()
            self._local.parser = parser
        return parser

    def run(
        self,
        root: Union[str, Path],
        paths: Optional[Sequence[str]] = None,
        on_progress: ProgressCallback = None,
    ) -> AnalysisResult:
        """Analyze files under ``root``.

        Args:
            root: Analysis root; finding paths are relative to it
            paths: Relative paths to analyze (discovered under ``root`` if None)
            on_progress: Optional callback receiving status messages

        Raises:
            InvalidPathError: If ``paths`` is None and ``root`` is not a directory
        """
        root = Path(root)
        if paths is None:
            paths = discover_php_files(root, self.config.exclude_dirs)
            logger.info(f"Discovered {len(paths)} PHP files under {root}")

        sources: list[SourceFile] = []
        for path in paths:
            try:
                sources.append(read_source_file(root, path))
            except FileAccessError as e:
                logger.warning(f"Skipping {path}: {e.reason}")

        return self.analyze_sources(
            sources, total_files=len(paths), root=root, on_progress=on_progress
        )

    def analyze_sources(
        self,
        sources: Iterable[SourceFile],
        total_files: Optional[int] = None,
        root: Optional[Path] = None,
        on_progress: ProgressCallback = None,
    ) -> AnalysisResult:
        """Analyze already-read sources.

        ``total_files`` defaults to the number of sources; pass the size of
        the original file list when some files could not be read. Linters
        only run when ``root`` is given, since they need real files.
        """
        sources = list(sources)
        total = len(sources) if total_files is None else total_files

        def _progress(msg: str) -> None:
            if on_progress is not None:
                on_progress(msg)

        _progress("Building corpus snapshot...")
        corpus = CorpusSnapshot.from_sources(sources)
        self.registry.prepare_all(corpus, self._parser())

        _progress(f"Analyzing {len(sources)} files...")
        outcomes = self._analyze_all(sources, corpus, root)

        issues = [finding for outcome in outcomes for finding in outcome.findings]
        analyzed = sum(1 for outcome in outcomes if outcome.analyzed)
        logger.info(f"Analyzed {analyzed}/{total} files, {len(issues)} issues")
        _progress("Aggregating results...")
        return aggregate(issues, total_files=total, analyzed_files=analyzed)

    def _analyze_all(
        self, sources: list[SourceFile], corpus: CorpusSnapshot, root: Optional[Path]
    ) -> list[FileOutcome]:
        """Analyze every source on worker threads; outcomes keep input order.

        At most ``workers`` files are in flight. Each file's deadline starts
        when a worker picks it up. A file past its deadline is abandoned and
        counted as not analyzed; its thread cannot be stopped, so the executor
        holding it is retired and the remaining files go to a fresh one.
        With ``workers == 1`` files still run one at a time, in input order.
        """
        if not sources:
            return []

        workers = self.config.workers
        timeout = self.config.file_timeout_seconds
        started: dict[int, float] = {}

        def _timed(index: int, source: SourceFile) -> FileOutcome:
            started[index] = time.monotonic()
            return self._analyze_file(source, corpus, root)

        pending = deque(enumerate(sources))
        running: dict[concurrent.futures.Future, tuple[int, SourceFile]] = {}
        outcomes: dict[int, FileOutcome] = {}
        executor = self._new_executor()
        retired: list[concurrent.futures.ThreadPoolExecutor] = []
        try:
            while pending or running:
                while pending and len(running) < workers:
                    index, source = pending.popleft()
                    running[executor.submit(_timed, index, source)] = (index, source)

                done, _ = concurrent.futures.wait(
                    running, timeout=POLL_INTERVAL, return_when=concurrent.futures.FIRST_COMPLETED
                )
                for future in done:
                    index, _source = running.pop(future)
                    outcomes[index] = future.result()

                now = time.monotonic()
                expired = [
                    future
                    for future, (index, _source) in running.items()
                    if index in started and now - started[index] > timeout
                ]
                if not expired:
                    continue
                for future in expired:
                    index, source = running.pop(future)
                    logger.warning(str(AnalyzerTimeoutError(source.path, timeout)))
                    outcomes[index] = FileOutcome(path=source.path, analyzed=False)
                retired.append(executor)
                executor.shutdown(wait=False)
                executor = self._new_executor()
            return [outcomes[index] for index in range(len(sources))]
        finally:
            # abandoned workers keep running; do not block on them
            for pool in (*retired, executor):
                pool.shutdown(wait=False, cancel_futures=True)

    def _new_executor(self) -> concurrent.futures.ThreadPoolExecutor:
        return concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="php-insight"
        )

    def _analyze_file(
        self, source: SourceFile, corpus: CorpusSnapshot, root: Optional[Path]
    ) -> FileOutcome:
        try:
            tree = self._parser().parse(source.content, source.path)
        except ParsingError as e:
            logger.warning(f"Skipping {source.path}: {e.reason}")
            return FileOutcome(path=source.path, analyzed=False)

        findings = self.registry.run(source, tree, corpus)
        if self.linter is not None and root is not None:
            findings.extend(self._lint(root, source))
        return FileOutcome(path=source.path, analyzed=True, findings=tuple(findings))

    def _lint(self, root: Path, source: SourceFile) -> list[Finding]:
        """Coding-standard findings for one file; a failing linter contributes none."""
        try:
            findings = self.linter.check(root / source.path)
        except Exception as e:
            logger.warning(
                f"Coding-standard check failed for {source.path}: {type(e).__name__}: {e}"
            )
            logger.debug("linter traceback", exc_info=True)
            return []
        return [
            dataclasses.replace(finding, type="linting", file_path=source.path)
            for finding in findings
        ]
