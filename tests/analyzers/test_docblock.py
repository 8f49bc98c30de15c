"""Tests for DocBlockAnalyzer."""

import textwrap

import pytest

from php_insight.analyzers import DocBlockAnalyzer
from php_insight.analyzers.docblock import returns_value
from php_insight.models import Severity
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE

MODEL = "app/Models/Invoice.php"


def _php(code):
    return textwrap.dedent(code).lstrip("\n")


INVOICE = _php(
    """
    <?php

    /**
     * An invoice.
     */
    class Invoice
    {
        METHOD_DOC
        public function add(int $amount): int
        {
            BODY
        }
    }
    """
)


def _documented(method_doc, body="return $this->total += $amount;"):
    return INVOICE.replace("METHOD_DOC", method_doc).replace("BODY", body)


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestMissingDocs:
    """Test declarations without docblocks."""

    def test_undocumented_class(self, analyze_source):
        code = _php(
            """
            <?php

            class Invoice
            {
                private $total;

                // Running total
                public function total()
                {
                    return $this->total;
                }
            }
            """
        )
        findings = analyze_source(DocBlockAnalyzer(), code, MODEL)
        assert [(f.type, f.line) for f in findings] == [
            ("missing_class_doc", 3),
            ("missing_method_doc", 8),
            ("missing_property_doc", 5),
        ]
        assert [f.severity for f in findings] == [Severity.MINOR, Severity.MINOR, Severity.INFO]

    def test_fully_documented(self, analyze_source):
        doc = "/**\n     * Adds to the total.\n     *\n     * @param int $amount\n"
        doc += "     * @return int\n     */"
        assert analyze_source(DocBlockAnalyzer(), _documented(doc), MODEL) == []

    def test_package_tag_outside_app(self, analyze_source):
        doc = "/** @param int $amount @return int */"
        findings = analyze_source(DocBlockAnalyzer(), _documented(doc), "src/Invoice.php")
        assert [f.type for f in findings] == ["missing_package_tag"]

    def test_scaffolding_methods_need_no_docs(self, analyze_source):
        code = _documented("").replace(" * An invoice.", " * @package Database")
        path = "database/seeders/InvoiceSeeder.php"
        assert analyze_source(DocBlockAnalyzer(), code, path) == []


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestMethodTags:
    """Test @param and @return tags."""

    def test_missing_param_and_return(self, analyze_source):
        findings = analyze_source(DocBlockAnalyzer(), _documented("/** Adds. */"), MODEL)
        assert [f.type for f in findings] == ["missing_param_doc", "missing_return_doc"]
        assert findings[0].refactor_info == {"methodName": "add"}
        assert findings[0].line == 9

    def test_void_doc_on_returning_method(self, analyze_source):
        doc = "/** @param int $amount @return void */"
        findings = analyze_source(DocBlockAnalyzer(), _documented(doc), MODEL)
        assert [f.type for f in findings] == ["incorrect_return_doc"]

    def test_void_doc_on_void_method(self, analyze_source):
        doc = "/** @param int $amount @return void */"
        code = _documented(doc, body="$this->total += $amount;")
        assert analyze_source(DocBlockAnalyzer(), code, MODEL) == []

    def test_closure_returns_do_not_count(self, parser):
        code = _documented("", body="$this->hooks[] = function () { return 1; };")
        method = parser.parse(code, MODEL).methods()[0]
        assert not returns_value(method)

    def test_bare_return_has_no_value(self, parser):
        code = _documented("", body="return;")
        method = parser.parse(code, MODEL).methods()[0]
        assert not returns_value(method)
