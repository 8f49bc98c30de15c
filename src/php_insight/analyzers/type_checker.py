"""TYPE_CHECKER: missing and overly loose type declarations.

Finding types:
    missing_type_hint    major  parameter without a declared type
    mixed_type           minor  parameter declared ``mixed``
    missing_return_type  major  method/function without a return type (constructors exempt)
    mixed_return_type    minor  return type declared ``mixed``
    missing_doc_type     info   builds arrays but neither declares nor documents the return
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import SyntaxNode, doc_comments, doc_key, parameters, return_type, walk
from .base import Analyzer
from .laravel import is_lifecycle_method

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree


def builds_array(node: SyntaxNode) -> bool:
    return any(child.type == "array_creation_expression" for child in walk(node))


class TypeChecker(Analyzer):
    """Checks parameter and return type declarations of methods and functions."""

    name = "type_checker"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        docs = doc_comments(tree.root)
        findings: list[Finding] = []
        for node in tree.callables():
            findings.extend(self._check_parameters(file.path, node))
            findings.extend(self._check_return_type(file.path, node, docs.get(doc_key(node), "")))
        return findings

    def _check_parameters(self, path: str, node: SyntaxNode) -> list[Finding]:
        findings: list[Finding] = []
        for index, param in enumerate(parameters(node), start=1):
            if param.type is None:
                findings.append(
                    Finding(
                        type="missing_type_hint",
                        severity=Severity.MAJOR,
                        message=f"Parameter #{index} ({param.name}) is missing type hint",
                        file_path=path,
                        line=node.start_line,
                        end_line=node.end_line,
                        suggestion="Add type hints for better IDE support and code clarity",
                        refactor_info={"methodName": node.name, "parameter": param.name},
                    )
                )
            elif param.type == "mixed":
                findings.append(
                    Finding(
                        type="mixed_type",
                        severity=Severity.MINOR,
                        message=f"Parameter #{index} ({param.name}) uses mixed type",
                        file_path=path,
                        line=node.start_line,
                        end_line=node.end_line,
                        suggestion=(
                            "Consider using more specific types or union types (int|string|null)"
                        ),
                    )
                )
        return findings

    def _check_return_type(self, path: str, node: SyntaxNode, doc: str) -> list[Finding]:
        declared = return_type(node)
        findings: list[Finding] = []

        if declared is None and not is_lifecycle_method(node.name):
            findings.append(
                Finding(
                    type="missing_return_type",
                    severity=Severity.MAJOR,
                    message=f'Method "{node.name}" is missing return type declaration',
                    file_path=path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion="Add return type hints for better type safety",
                )
            )
        elif declared == "mixed":
            findings.append(
                Finding(
                    type="mixed_return_type",
                    severity=Severity.MINOR,
                    message=f'Return type of "{node.name}" is mixed',
                    file_path=path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion="Consider using more specific return types",
                )
            )

        if declared != "array" and "@return" not in doc and builds_array(node):
            findings.append(
                Finding(
                    type="missing_doc_type",
                    severity=Severity.INFO,
                    message=f'Method "{node.name}" builds arrays without a type annotation',
                    file_path=path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion="Add PHPDoc with array shape or use @return array",
                )
            )
        return findings
