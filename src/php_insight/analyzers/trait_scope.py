"""TRAIT_SCOPE: Eloquent models that would read better with scopes or traits.

Finding types:
    suggest_scope  info   the same query-builder call repeated inside a model
    suggest_trait  info   more than five relationship definitions, no custom trait
    suggest_trait  minor  soft-delete column without the SoftDeletes trait
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, walk
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxNode, SyntaxTree

QUERY_PATTERNS = {
    query: re.compile(rf"->{query}\([^)]+\)")
    for query in ("where", "whereIn", "orderBy", "with", "has", "whereHas")
}
RELATION_PATTERNS = {
    relation: re.compile(rf"->{relation}\([^)]+\)")
    for relation in ("hasOne", "hasMany", "belongsTo", "belongsToMany", "morphOne", "morphMany")
}
RELATION_PATTERNS["morphTo"] = re.compile(r"->morphTo\([^)]*\)")
MAX_RELATIONS = 5

_CUSTOM_TRAIT = re.compile(r"\w+Trait\b")
_EXTENDS_MODEL = re.compile(r"extends\s+Model\b")


def is_model_class(path: str, cls: SyntaxNode) -> bool:
    if "Models/" in path or "models/" in path:
        return True
    base = cls.child_of_type("base_clause")
    return base is not None and bool(_EXTENDS_MODEL.search(base.text))


def used_traits(cls: SyntaxNode) -> str:
    """Text of the class's trait ``use`` statements."""
    return " ".join(node.text for node in walk(cls) if node.type == "use_declaration")


class TraitScopeAnalyzer(Analyzer):
    """Suggests local scopes and traits for Eloquent models."""

    name = "trait_scope"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        findings: list[Finding] = []
        for cls in tree.root.find_all(NodeKind.CLASS):
            if is_model_class(file.path, cls):
                findings.extend(self._suggest_scopes(file.path, cls))
                findings.extend(self._suggest_traits(file.path, cls))
        return findings

    def _suggest_scopes(self, path: str, cls: SyntaxNode) -> list[Finding]:
        text = cls.text
        findings: list[Finding] = []
        for query, pattern in QUERY_PATTERNS.items():
            occurrences = len(pattern.findall(text))
            if occurrences < 2:
                continue
            scope = f"scope{query[0].upper()}{query[1:]}"
            findings.append(
                Finding(
                    type="suggest_scope",
                    severity=Severity.INFO,
                    message=(
                        f"Consider creating a '{scope}' method for repeated {query} queries "
                        f"(used {occurrences} times)"
                    ),
                    file_path=path,
                    line=cls.start_line,
                    suggestion=(
                        f"Create a scope method: public function {scope}(Builder $query, ...) "
                        f"{{ return $query->{query}(...); }}"
                    ),
                    refactor_info={
                        "queryType": query,
                        "occurrences": occurrences,
                        "suggestedScope": scope,
                    },
                )
            )
        return findings

    def _suggest_traits(self, path: str, cls: SyntaxNode) -> list[Finding]:
        text = cls.text
        traits = used_traits(cls)
        findings: list[Finding] = []

        relations = sum(len(pattern.findall(text)) for pattern in RELATION_PATTERNS.values())
        if relations > MAX_RELATIONS and not _CUSTOM_TRAIT.search(traits):
            findings.append(
                Finding(
                    type="suggest_trait",
                    severity=Severity.INFO,
                    message=(
                        f"Model has {relations} relationships - consider extracting into "
                        "a reusable trait"
                    ),
                    file_path=path,
                    line=cls.start_line,
                    suggestion=(
                        "Create a trait with relationship definitions for better code "
                        "organization"
                    ),
                    refactor_info={"relations": relations},
                )
            )

        soft_delete_column = "softDeletes()" in text or "deleted_at" in text
        if soft_delete_column and "SoftDeletes" not in traits:
            findings.append(
                Finding(
                    type="suggest_trait",
                    severity=Severity.MINOR,
                    message="Model has soft delete column but not using SoftDeletes trait",
                    file_path=path,
                    line=cls.start_line,
                    suggestion=(
                        'Add "use SoftDeletes;" trait from '
                        "Illuminate\\Database\\Eloquent\\SoftDeletes"
                    ),
                )
            )
        return findings
