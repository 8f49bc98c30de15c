"""N_PLUS_ONE: lazy relationship loading and queries inside loops.

Finding types:
    n_plus_one_query       critical  relationship access inside a loop, no eager loading
    query_in_loop          critical  Model::find/where/first or DB:: call inside a loop
    missing_eager_loading  major     get()/all() result iterated with relationship access
    n_plus_one_blade       major     get()/all() result handed to a view without eager loading

Loop bodies are taken from the syntax tree (foreach/for/while/do statements and
``->each()`` / ``->map()`` calls), so an access before or after the loop does
not count as an access inside it.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, SyntaxNode
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

# Property access without a call: $user->posts, not $user->getName() or $user->id
_RELATIONSHIP_ACCESS = re.compile(
    r"\$\w+->((?!id|name|title|email|created_at|updated_at|deleted_at)[a-z_]\w*)\b(?!\s*\()"
)
_EXPLICIT_LOAD = ("->load(", "->loadMissing(")
_EAGER_LOADING = ("->with(", "::with(", "->load(")
_QUERIES = ("::find", "::where", "::first", "DB::")
_COLLECTION_FETCH = ("->get()", "::all()")
_ITERATING_CALLS = frozenset({"each", "map"})


def has_relationship_access(text: str) -> bool:
    return bool(_RELATIONSHIP_ACCESS.search(text)) or any(call in text for call in _EXPLICIT_LOAD)


def has_eager_loading(text: str) -> bool:
    return any(call in text for call in _EAGER_LOADING)


def loop_bodies(node: SyntaxNode) -> list[SyntaxNode]:
    """Loop statements and iterating collection calls under ``node``."""
    loops: list[SyntaxNode] = []
    for child in node.find_all(NodeKind.LOOP, NodeKind.MEMBER_CALL):
        if child.kind is NodeKind.LOOP or child.name in _ITERATING_CALLS:
            loops.append(child)
    return loops


class NPlusOneDetector(Analyzer):
    """Detects N+1 query patterns in Eloquent code."""

    name = "n_plus_one"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        findings: list[Finding] = []
        for node in tree.callables():
            findings.extend(self._check_view(file.path, node))
            loops = loop_bodies(node)
            if not loops:
                continue
            findings.extend(self._check_method(file.path, node, loops))
        return findings

    def _check_view(self, file_path: str, node: SyntaxNode) -> list[Finding]:
        text = node.text
        renders = "view(" in text
        fetches = any(call in text for call in _COLLECTION_FETCH)
        if not renders or not fetches or has_eager_loading(text):
            return []
        return [
            Finding(
                type="n_plus_one_blade",
                severity=Severity.MAJOR,
                message=(
                    f'Potential N+1 in view rendered by "{node.name}": collection passed '
                    "without eager loading"
                ),
                file_path=file_path,
                line=node.start_line,
                end_line=node.end_line,
                suggestion=(
                    "Eager load relationships before passing to view: $items->load('relation')"
                ),
            )
        ]

    def _check_method(
        self, file_path: str, node: SyntaxNode, loops: list[SyntaxNode]
    ) -> list[Finding]:
        text = node.text
        method_name = node.name
        loop_texts = [loop.text for loop in loops]
        access_in_loop = any(has_relationship_access(body) for body in loop_texts)
        eager = has_eager_loading(text)

        findings: list[Finding] = []
        if access_in_loop and not eager:
            findings.append(
                Finding(
                    type="n_plus_one_query",
                    severity=Severity.CRITICAL,
                    message=(
                        f'Potential N+1 query in "{method_name}": relationship access '
                        "inside loop without eager loading"
                    ),
                    file_path=file_path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion=(
                        "Use eager loading with ->with(['relationName']) before the loop "
                        "to prevent N+1 queries"
                    ),
                    refactor_info={
                        "methodName": method_name,
                        "pattern": "loop_with_relationship",
                        "recommendation": "Add ->with() to the query before looping",
                    },
                )
            )

        query_loops = [loop for loop in loops if any(query in loop.text for query in _QUERIES)]
        if query_loops:
            first = query_loops[0]
            findings.append(
                Finding(
                    type="query_in_loop",
                    severity=Severity.CRITICAL,
                    message=f'Database query inside loop in "{method_name}"',
                    file_path=file_path,
                    line=first.start_line,
                    end_line=first.end_line,
                    suggestion=(
                        "Move query outside loop and eager load data, or use whereIn() "
                        "with collected IDs"
                    ),
                )
            )

        fetches = any(call in text for call in _COLLECTION_FETCH)
        if fetches and access_in_loop and "with(" not in text:
            findings.append(
                Finding(
                    type="missing_eager_loading",
                    severity=Severity.MAJOR,
                    message="Model query without eager loading before collection iteration",
                    file_path=file_path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion=(
                        "Add ->with(['relationships']) to prevent lazy loading during iteration"
                    ),
                )
            )
        return findings
