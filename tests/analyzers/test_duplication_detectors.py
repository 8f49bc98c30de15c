"""Tests for DuplicationDetector and CrossFileDuplicationDetector."""

import textwrap

import pytest

from php_insight.analyzers import CrossFileDuplicationDetector, DuplicationDetector
from php_insight.models import Severity
from php_insight.scanning.models import CorpusSnapshot, SourceFile
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE

EXPORTS = textwrap.dedent(
    """\
    <?php

    class Exporter
    {
        public function exportUsers($users)
        {
            $rows = [];
            foreach ($users as $user) {
                $rows[] = [$user->id, $user->email, $user->created_at];
            }
            $this->writer->write('users.csv', $rows);
            return count($rows);
        }

        public function exportOrders($orders)
        {
            $rows = [];
            foreach ($orders as $order) {
                $rows[] = [$order->id, $order->email, $order->created_at];
            }
            $this->writer->write('orders.csv', $rows);
            return count($rows);
        }
    }
    """
)

SYNC = textwrap.dedent(
    """\
    <?php

    function sync($users, $admins)
    {
        if ($users) {
            $users->load('profile');
            $users->each->touch();
            Cache::forget('users');
            Log::info('synced users');
        }
        if ($admins) {
            $admins->load('profile');
            $admins->each->touch();
            Cache::forget('admins');
            Log::info('synced admins');
        }
    }
    """
)


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestDuplicationDetector:
    """Within-file duplication."""

    def test_duplicate_methods(self, analyze_source):
        findings = analyze_source(DuplicationDetector(), EXPORTS, "app/Exporter.php")
        assert [f.type for f in findings] == ["duplicate_method"]
        finding = findings[0]
        assert finding.severity is Severity.MAJOR
        assert finding.line == 5
        assert finding.refactor_info["method1"] == "exportUsers"
        assert finding.refactor_info["method2"] == "exportOrders"
        assert finding.refactor_info["lines1"] == "5-13"
        assert finding.refactor_info["lines2"] == "15-23"
        assert finding.refactor_info["similarity"] >= 0.85

    def test_duplicate_blocks(self, analyze_source):
        findings = analyze_source(DuplicationDetector(), SYNC, "app/sync.php")
        assert [f.type for f in findings] == ["duplicate_code_block"]
        finding = findings[0]
        assert finding.severity is Severity.MINOR
        assert finding.refactor_info["block1Lines"] == "5-10"
        assert finding.refactor_info["block2Lines"] == "11-16"
        assert "lines 5-10 is 100% similar to lines 11-16" in finding.message

    def test_ten_short_getters_produce_nothing(self, analyze_source, getters_source):
        assert analyze_source(DuplicationDetector(), getters_source, "app/Getters.php") == []

    def test_higher_threshold_leaves_identical_bodies(self, analyze_source):
        # the method names keep the declarations below 0.99; their bodies are identical
        findings = analyze_source(DuplicationDetector(threshold=0.99), EXPORTS)
        assert [f.type for f in findings] == ["duplicate_code_block"]


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestCrossFileDuplicationDetector:
    """Corpus-wide duplication."""

    def _run_all(self, parser, files):
        corpus = CorpusSnapshot(files)
        detector = CrossFileDuplicationDetector()
        detector.prepare(corpus, parser)
        findings = []
        for source in corpus.sources():
            findings.extend(
                detector.analyze(source, parser.parse(source.content, source.path), corpus)
            )
        return findings

    def test_calculate_total_pair(self, parser, calculate_total_corpus):
        findings = self._run_all(parser, calculate_total_corpus)
        assert len(findings) == 1
        finding = findings[0]
        assert finding.type == "cross_file_duplication"
        assert finding.file_path == "A.php"
        info = finding.refactor_info
        assert info["method1"]["file"] == "A.php"
        assert info["method2"]["file"] == "B.php"
        assert info["method1"]["name"] == info["method2"]["name"] == "calculateTotal"
        assert info["method1"]["lines"] == "5-14"
        assert info["similarity"] >= 0.85

    def test_same_file_pairs_left_to_within_file_detector(self, parser):
        assert self._run_all(parser, {"app/Exporter.php": EXPORTS}) == []

    def _analyze_first(self, parser, files):
        corpus = CorpusSnapshot(files)
        detector = CrossFileDuplicationDetector()
        detector.prepare(corpus, parser)
        source = SourceFile("A.php", files["A.php"])
        return detector.analyze(source, parser.parse(source.content, "A.php"), corpus)

    def test_unparseable_file_skipped_in_index(self, parser, calculate_total_corpus):
        files = dict(calculate_total_corpus)
        files["broken.php"] = "<?php\nfunction broken( {\n"
        assert len(self._analyze_first(parser, files)) == 1

    def test_unprepared_corpus_yields_nothing(self, parser, calculate_total_corpus):
        corpus = CorpusSnapshot(calculate_total_corpus)
        source = SourceFile("A.php", corpus["A.php"])
        detector = CrossFileDuplicationDetector()
        assert detector.analyze(source, parser.parse(source.content, "A.php"), corpus) == []
