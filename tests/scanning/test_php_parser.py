"""Tests for the tree-sitter PHP parser adapter."""

import pytest

from php_insight.exceptions import ParsingError
from php_insight.scanning.syntax import NodeKind, SyntaxTree
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE, PhpParser

VALID = "<?php\n\nclass User\n{\n    public function name()\n    {\n        return 'x';\n    }\n}\n"
BROKEN = "<?php\n\nfunction broken( {\n    return;\n"


class TestAvailability:
    """Test grammar availability detection."""

    def test_availability_flag_is_bool(self):
        assert isinstance(TREE_SITTER_AVAILABLE, bool)

    def test_parser_reports_availability(self):
        assert PhpParser().available == TREE_SITTER_AVAILABLE

    def test_parse_without_grammar_raises(self):
        if TREE_SITTER_AVAILABLE:
            pytest.skip("grammar installed")
        with pytest.raises(ParsingError):
            PhpParser().parse(VALID, "User.php")


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestPhpParser:
    """Tests that require the PHP grammar."""

    def test_parse_returns_tree(self, parser):
        tree = parser.parse(VALID, "User.php")
        assert isinstance(tree, SyntaxTree)
        assert tree.path == "User.php"
        assert tree.root.kind is NodeKind.PROGRAM
        assert not tree.has_error

    def test_lines_are_one_based(self, parser):
        tree = parser.parse(VALID, "User.php")
        method = tree.methods()[0]
        assert method.start_line == 5
        assert method.end_line == 8
        assert method.name == "name"

    def test_syntax_error_raises(self, parser):
        with pytest.raises(ParsingError) as exc_info:
            parser.parse(BROKEN, "broken.php")
        assert exc_info.value.filepath == "broken.php"
        assert "syntax error" in exc_info.value.reason

    def test_tolerant_parser_keeps_broken_tree(self):
        tree = PhpParser(tolerate_syntax_errors=True).parse(BROKEN, "broken.php")
        assert tree.has_error

    def test_non_ascii_source(self, parser):
        code = "<?php\n$greeting = 'Привет, мир';\n"
        tree = parser.parse(code, "i18n.php")
        assert "Привет" in tree.root.text

    def test_empty_source(self, parser):
        tree = parser.parse("", "empty.php")
        assert tree.callables() == []
