"""End-to-end tests for AnalysisPipeline."""

import logging
import threading
import time

import pytest

from php_insight.analyzers import Analyzer, AnalyzerRegistry
from php_insight.config import AnalysisConfig
from php_insight.core import AnalysisPipeline
from php_insight.models import Finding, Severity
from php_insight.scanning.models import SourceFile
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE

pytestmark = pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter-php not installed")

DUPLICATION_TYPES = {
    "duplicate_method",
    "duplicate_code_block",
    "cross_file_duplication",
    "duplicate_methods",
}


def _small_file(i: int) -> str:
    return f"<?php\n\nfunction helper{i}()\n{{\n    return {i};\n}}\n"


def _write(root, files):
    for path, content in files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


class PathMarker(Analyzer):
    """Emits one finding per file so tests can see which files ran."""

    name = "path_marker"

    def analyze(self, file, tree, corpus):
        return [
            Finding(
                type="marker",
                severity=Severity.INFO,
                message=file.path,
                file_path=file.path,
                line=1,
            )
        ]


class TestScenarios:
    """Behaviour of the full default rule set on small corpora."""

    def test_calculate_total_reported_once_across_files(self, calculate_total_corpus):
        sources = [SourceFile(path, content) for path, content in calculate_total_corpus.items()]
        result = AnalysisPipeline().analyze_sources(sources)

        cross = [f for f in result.issues if f.type == "cross_file_duplication"]
        assert len(cross) == 1
        assert cross[0].file_path == "A.php"
        assert cross[0].refactor_info["similarity"] >= 0.85
        assert cross[0].refactor_info["method2"]["file"] == "B.php"
        assert result.analyzed_files == result.total_files == 2

    def test_short_getters_not_duplicates(self, getters_source):
        result = AnalysisPipeline().analyze_sources(
            [SourceFile("app/Getters.php", getters_source)]
        )
        assert [f for f in result.issues if f.type in DUPLICATION_TYPES] == []

    def test_one_broken_file_in_hundred(self):
        sources = [SourceFile(f"src/f{i:03d}.php", _small_file(i)) for i in range(99)]
        sources.append(SourceFile("src/broken.php", "<?php\nclass {\n"))

        result = AnalysisPipeline().analyze_sources(sources)

        assert result.total_files == 100
        assert result.analyzed_files == 99
        assert all(f.file_path != "src/broken.php" for f in result.issues)

    def test_statistics_match_issues(self, calculate_total_corpus):
        sources = [SourceFile(path, content) for path, content in calculate_total_corpus.items()]
        result = AnalysisPipeline().analyze_sources(sources)
        assert result.statistics.total_issues == len(result.issues)
        assert sum(result.statistics.by_severity.values()) == len(result.issues)


class TestRun:
    """Test AnalysisPipeline.run() over real directories."""

    def test_discovers_and_skips_excluded(self, tmp_path, calculate_total_corpus):
        _write(tmp_path, calculate_total_corpus)
        _write(tmp_path, {"vendor/lib/A.php": calculate_total_corpus["A.php"]})

        result = AnalysisPipeline().run(tmp_path)

        assert result.total_files == 2
        assert all(not f.file_path.startswith("vendor/") for f in result.issues)

    def test_unreadable_file_counted_but_not_analyzed(self, tmp_path):
        _write(tmp_path, {"a.php": _small_file(1)})
        registry = AnalyzerRegistry([PathMarker()])

        result = AnalysisPipeline(registry=registry).run(tmp_path, paths=["a.php", "missing.php"])

        assert result.total_files == 2
        assert result.analyzed_files == 1
        assert [f.message for f in result.issues] == ["a.php"]

    def test_progress_messages(self, tmp_path):
        _write(tmp_path, {"a.php": _small_file(1)})
        messages = []
        AnalysisPipeline(registry=AnalyzerRegistry()).run(tmp_path, on_progress=messages.append)
        assert messages[0] == "Building corpus snapshot..."
        assert messages[-1] == "Aggregating results..."

    def test_linter_findings_stamped(self, tmp_path):
        class FakeLinter:
            def __init__(self):
                self.checked = []

            def check(self, path):
                self.checked.append(path)
                return [
                    Finding(
                        type="coding_standard",
                        severity=Severity.MINOR,
                        message="Line exceeds 120 characters",
                        file_path=str(path),
                        line=3,
                        refactor_info={"tool": "PHPCS", "rule": "Generic.Files.LineLength"},
                    )
                ]

        _write(tmp_path, {"app/a.php": _small_file(1)})
        linter = FakeLinter()
        result = AnalysisPipeline(registry=AnalyzerRegistry(), linter=linter).run(tmp_path)

        assert linter.checked == [tmp_path / "app/a.php"]
        (finding,) = result.issues
        assert finding.type == "linting"
        assert finding.file_path == "app/a.php"
        assert finding.refactor_info["tool"] == "PHPCS"

    def test_linter_not_run_without_root(self):
        class ExplodingLinter:
            def check(self, path):
                raise AssertionError("linter must not run")

        pipeline = AnalysisPipeline(registry=AnalyzerRegistry(), linter=ExplodingLinter())
        result = pipeline.analyze_sources([SourceFile("a.php", _small_file(1))])
        assert result.analyzed_files == 1


class TestConcurrency:
    """Thread-pool execution."""

    def test_pooled_matches_sequential(self, calculate_total_corpus):
        files = dict(calculate_total_corpus)
        files.update({f"lib/f{i}.php": _small_file(i) for i in range(8)})
        sources = [SourceFile(path, content) for path, content in files.items()]

        sequential = AnalysisPipeline(AnalysisConfig(workers=1)).analyze_sources(sources)
        pooled = AnalysisPipeline(AnalysisConfig(workers=4)).analyze_sources(sources)

        assert pooled.to_dict() == sequential.to_dict()

    def test_timed_out_file_not_analyzed(self):
        release = threading.Event()

        class Blocking(PathMarker):
            name = "blocking"

            def analyze(self, file, tree, corpus):
                if file.path == "slow.php":
                    release.wait(10)
                return super().analyze(file, tree, corpus)

        config = AnalysisConfig(workers=2, file_timeout_seconds=1)
        pipeline = AnalysisPipeline(config, registry=AnalyzerRegistry([Blocking()]))
        sources = [SourceFile("slow.php", _small_file(1)), SourceFile("fast.php", _small_file(2))]
        try:
            result = pipeline.analyze_sources(sources)
        finally:
            release.set()

        assert result.total_files == 2
        assert result.analyzed_files == 1
        assert [f.file_path for f in result.issues] == ["fast.php"]

    def test_hung_files_do_not_starve_the_rest(self):
        release = threading.Event()

        class Hanging(PathMarker):
            name = "hanging"

            def analyze(self, file, tree, corpus):
                if file.path.startswith("hang"):
                    release.wait(10)
                return super().analyze(file, tree, corpus)

        config = AnalysisConfig(workers=2, file_timeout_seconds=1)
        pipeline = AnalysisPipeline(config, registry=AnalyzerRegistry([Hanging()]))
        names = ["hang1.php", "hang2.php", "ok0.php", "ok1.php", "ok2.php"]
        sources = [SourceFile(name, _small_file(i)) for i, name in enumerate(names)]

        start = time.monotonic()
        try:
            result = pipeline.analyze_sources(sources)
        finally:
            release.set()

        assert result.analyzed_files == 3
        assert [f.file_path for f in result.issues] == ["ok0.php", "ok1.php", "ok2.php"]
        assert time.monotonic() - start < 4

    def test_timeout_applies_with_one_worker(self):
        release = threading.Event()

        class Blocking(PathMarker):
            name = "blocking"

            def analyze(self, file, tree, corpus):
                if file.path == "slow.php":
                    release.wait(10)
                return super().analyze(file, tree, corpus)

        config = AnalysisConfig(workers=1, file_timeout_seconds=1)
        pipeline = AnalysisPipeline(config, registry=AnalyzerRegistry([Blocking()]))
        sources = [SourceFile("slow.php", _small_file(1)), SourceFile("fast.php", _small_file(2))]

        start = time.monotonic()
        try:
            result = pipeline.analyze_sources(sources)
        finally:
            release.set()

        assert result.analyzed_files == 1
        assert [f.file_path for f in result.issues] == ["fast.php"]
        assert time.monotonic() - start < 4

    def test_single_worker_keeps_input_order(self):
        sources = [SourceFile(f"f{i}.php", _small_file(i)) for i in range(5)]
        pipeline = AnalysisPipeline(registry=AnalyzerRegistry([PathMarker()]))
        result = pipeline.analyze_sources(sources)
        assert [f.file_path for f in result.issues] == [s.path for s in sources]


class TestFailureIsolation:
    """Failures in one file or one tool never abort the run."""

    def test_crashing_linter_contributes_nothing(self, tmp_path):
        class CrashingLinter:
            def check(self, path):
                raise AttributeError("'list' object has no attribute 'get'")

        _write(tmp_path, {"a.php": _small_file(1), "b.php": _small_file(2)})
        pipeline = AnalysisPipeline(
            registry=AnalyzerRegistry([PathMarker()]), linter=CrashingLinter()
        )

        result = pipeline.run(tmp_path)

        assert result.analyzed_files == 2
        assert [f.type for f in result.issues] == ["marker", "marker"]

    def test_unparseable_file_logged_as_warning(self, caplog):
        pipeline = AnalysisPipeline(registry=AnalyzerRegistry())
        with caplog.at_level(logging.WARNING, logger="php_insight"):
            result = pipeline.analyze_sources([SourceFile("src/broken.php", "<?php\nclass {\n")])

        assert result.analyzed_files == 0
        assert any(
            record.levelno == logging.WARNING and "src/broken.php" in record.getMessage()
            for record in caplog.records
        )
