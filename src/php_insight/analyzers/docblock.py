"""DOCBLOCK: missing and inconsistent PHPDoc comments.

Finding types:
    missing_class_doc     minor  class without a docblock
    missing_package_tag   info   class outside app/ without @package
    missing_method_doc    minor  method/function without a docblock
    missing_param_doc     minor  parameters but no @param tag
    missing_return_doc    minor  returns a value but no @return tag
    incorrect_return_doc  minor  ``@return void`` on a method that returns a value
    missing_property_doc  info   property without a docblock

A docblock is the block comment directly before the declaration.
Migrations, seeders and factories need no method docs.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, SyntaxNode, doc_comments, doc_key, parameters
from .base import Analyzer
from .laravel import is_scaffolding

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

_RETURN_VOID = re.compile(r"@return\s+void\b")


def returns_value(node: SyntaxNode) -> bool:
    """Whether a return statement of ``node`` itself (not of a nested closure) has a value."""
    stack = list(node.children)
    while stack:
        current = stack.pop()
        if current.kind in (NodeKind.CLOSURE, NodeKind.FUNCTION, NodeKind.CLASS):
            continue
        if current.type == "return_statement":
            if any(child.type not in ("return", ";") for child in current.children):
                return True
            continue
        stack.extend(current.children)
    return False


class DocBlockAnalyzer(Analyzer):
    """Checks that classes, methods and properties carry accurate docblocks."""

    name = "docblock"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        docs = doc_comments(tree.root)
        findings: list[Finding] = []
        for cls in tree.root.find_all(NodeKind.CLASS):
            findings.extend(self._check_class(file.path, cls, docs.get(doc_key(cls))))
        if not is_scaffolding(file.path):
            for node in tree.callables():
                findings.extend(self._check_method(file.path, node, docs.get(doc_key(node))))
        for prop in tree.root.find_all(NodeKind.PROPERTY):
            if doc_key(prop) not in docs:
                findings.append(
                    Finding(
                        type="missing_property_doc",
                        severity=Severity.INFO,
                        message="Property is missing PHPDoc comment",
                        file_path=file.path,
                        line=prop.start_line,
                        suggestion="Add PHPDoc comment with @var tag",
                    )
                )
        return findings

    def _check_class(self, path: str, cls: SyntaxNode, doc: str | None) -> list[Finding]:
        if doc is None:
            return [
                Finding(
                    type="missing_class_doc",
                    severity=Severity.MINOR,
                    message=f'Class "{cls.name}" is missing PHPDoc comment',
                    file_path=path,
                    line=cls.start_line,
                    suggestion="Add PHPDoc comment describing the class purpose",
                )
            ]
        if "@package" not in doc and "app/" not in path:
            return [
                Finding(
                    type="missing_package_tag",
                    severity=Severity.INFO,
                    message=f'Class "{cls.name}" is missing @package tag',
                    file_path=path,
                    line=cls.start_line,
                    suggestion="Consider adding @package tag for better organization",
                )
            ]
        return []

    def _check_method(self, path: str, node: SyntaxNode, doc: str | None) -> list[Finding]:
        name = node.name

        def finding(type_: str, message: str, suggestion: str) -> Finding:
            return Finding(
                type=type_,
                severity=Severity.MINOR,
                message=message,
                file_path=path,
                line=node.start_line,
                suggestion=suggestion,
                refactor_info={"methodName": name},
            )

        if doc is None:
            return [
                finding(
                    "missing_method_doc",
                    f'Method "{name}" is missing PHPDoc comment',
                    "Add PHPDoc comment with @param and @return annotations",
                )
            ]

        findings: list[Finding] = []
        if parameters(node) and "@param" not in doc:
            findings.append(
                finding(
                    "missing_param_doc",
                    f'Method "{name}" is missing @param documentation',
                    "Add @param tags for each parameter",
                )
            )
        value = returns_value(node)
        if value and "@return" not in doc:
            findings.append(
                finding(
                    "missing_return_doc",
                    f'Method "{name}" is missing @return documentation',
                    "Add @return tag describing the return value",
                )
            )
        if value and _RETURN_VOID.search(doc):
            findings.append(
                finding(
                    "incorrect_return_doc",
                    f'Method "{name}" declares @return void but returns a value',
                    "Update @return tag to match actual return type",
                )
            )
        return findings
