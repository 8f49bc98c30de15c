"""Tests for LogicAnalyzer and its complexity helpers."""

import textwrap

import pytest

from php_insight.analyzers import LogicAnalyzer
from php_insight.analyzers.logic import cyclomatic_complexity, magic_numbers, nesting_depth
from php_insight.models import Severity
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE


def _method(body, name="grade"):
    indented = textwrap.indent(textwrap.dedent(body).strip("\n"), " " * 8)
    return (
        "<?php\n\nclass Grader\n{\n"
        f"    public function {name}($score)\n    {{\n{indented}\n    }}\n}}\n"
    )


GRADE = _method(
    """
    if ($score > 90 && $score <= 100) {
        return 'A';
    } elseif ($score > 80) {
        return 'B';
    } else {
        return 'if && else or';
    }
    """
)

NESTED = _method(
    """
    foreach ($score->rows as $row) {
        if ($row) {
            while ($row->next()) {
                try {
                    $row->save();
                } catch (Exception $e) {
                    $row->reset();
                }
            }
        }
    }
    """,
    name="walkRows",
)

TIMEOUTS = _method("return $score * 86400 + 3600 + 404 + 300 + 42 + 1700000000;", name="ttl")


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestMetrics:
    """Test the tree-based metrics."""

    def test_cyclomatic_complexity(self, parser):
        method = parser.parse(GRADE, "Grader.php").methods()[0]
        # if, &&, elseif, else; keywords inside the string do not count
        assert cyclomatic_complexity(method) == 5

    def test_straight_line_complexity(self, parser):
        method = parser.parse(TIMEOUTS, "Grader.php").methods()[0]
        assert cyclomatic_complexity(method) == 1

    def test_nesting_depth(self, parser):
        method = parser.parse(NESTED, "Grader.php").methods()[0]
        assert nesting_depth(method) == 4

    def test_magic_numbers(self, parser):
        method = parser.parse(TIMEOUTS, "Grader.php").methods()[0]
        assert magic_numbers(method) == ["86400", "3600"]


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestLogicAnalyzer:
    """Test logic findings."""

    def test_simple_branching_is_clean(self, analyze_source):
        assert analyze_source(LogicAnalyzer(), GRADE) == []

    def test_high_complexity(self, analyze_source):
        findings = analyze_source(LogicAnalyzer(max_complexity=3), GRADE)
        assert [f.type for f in findings] == ["high_complexity"]
        assert findings[0].severity is Severity.MAJOR
        assert findings[0].refactor_info == {
            "methodName": "grade",
            "complexity": 5,
            "maxComplexity": 3,
        }

    def test_scopes_exempt_from_complexity(self, analyze_source):
        code = GRADE.replace("function grade", "function scopeGraded")
        assert analyze_source(LogicAnalyzer(max_complexity=3), code) == []

    def test_scaffolding_exempt_from_complexity(self, analyze_source):
        path = "database/seeders/GradeSeeder.php"
        assert analyze_source(LogicAnalyzer(max_complexity=3), GRADE, path) == []

    def test_deep_nesting(self, analyze_source):
        findings = analyze_source(LogicAnalyzer(max_nesting_depth=3), NESTED)
        assert [f.type for f in findings] == ["deep_nesting"]
        assert findings[0].refactor_info == {"methodName": "walkRows", "depth": 4}
        assert (findings[0].line, findings[0].end_line) == (5, 18)

    def test_nesting_within_limit(self, analyze_source):
        assert analyze_source(LogicAnalyzer(), NESTED) == []

    def test_magic_number(self, analyze_source):
        findings = analyze_source(LogicAnalyzer(), TIMEOUTS)
        assert [f.type for f in findings] == ["magic_number"]
        assert findings[0].message == "Magic numbers detected: 86400, 3600"
        assert findings[0].severity is Severity.MINOR

    def test_review_question(self, analyze_source):
        code = _method(
            """
            if ($score) {
                DB::table('scores')->delete($score);
            }
            """,
            name="purge",
        )
        findings = analyze_source(LogicAnalyzer(), code)
        assert [f.type for f in findings] == ["logic_question"]
        assert "transaction handling" in findings[0].message
        assert findings[0].severity is Severity.INFO
