"""PERFORMANCE: query and loop patterns that waste time or memory.

Finding types:
    query_without_limit      major  ->get() with no where/limit/with/select/orderBy
    fetch_all_records        major  ::all() outside obvious reference tables
    inefficient_count        minor  ->get()->count() instead of ->count()
    first_without_order      minor  ->first() without ->orderBy()
    missing_transaction      major  three or more writes with no transaction
    select_all_columns       minor  unfiltered ->get() without ->select()
    missing_cache            info   aggregate/join query without caching
    uncached_all             minor  ::all() in a controller without caching
    inefficient_array_build  minor  array_push() inside a loop
    count_in_loop            minor  count() evaluated on every loop iteration
    missing_index            major  migration with ->foreign() but no index
    missing_date_index       info   migration with timestamps but no created_at index

Method checks match on the declaration text; loop checks use the syntax tree.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, SyntaxNode, call_name
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

_WHERE = (
    "->where(",
    "->whereIn(",
    "->whereHas(",
    "->whereNotNull(",
    "->whereNull(",
    "->whereBetween(",
    "->whereDate(",
    "->whereYear(",
    "->whereTime(",
    "::where(",
)
_LIMIT = ("->limit(", "->take(", "->paginate(", "->simplePaginate(")
_EAGER = ("->with(", "::with(", "with([")
_GET = ("->get()", "::get()")
_FILTERS = _WHERE + _LIMIT + ("->orderBy(", "->with(", "::with(", "->groupBy(")
_EXPENSIVE = ("->count()", "->sum(", "->avg(", "join(", "groupBy(")
_CACHE = ("Cache::", "->remember(", "cache(")
_TRANSACTION = ("DB::transaction", "beginTransaction")

_REFERENCE_TABLE = re.compile(r"\b(Status|Type|Role|Permission|Category|Tag)\b")
_GET_THEN_COUNT = re.compile(r"->get\(\)\s*->count\(\)|\bcount\([^;]*->get\(\)\s*\)")
_CREATE = re.compile(r"::create\(")
_UPDATE = re.compile(r"->update\(")
_DELETE = re.compile(r"->delete\(")
_IF = re.compile(r"\bif\s*\(")

# Writes in one method that call for a transaction
TRANSACTION_WRITES = 3


def loop_calls(loop: SyntaxNode, name: str) -> bool:
    """Whether ``loop`` calls function ``name`` in its header or body."""
    return any(call_name(call) == name for call in loop.find_all(NodeKind.FUNCTION_CALL))


class PerformanceAnalyzer(Analyzer):
    """Flags Eloquent and loop patterns with avoidable cost."""

    name = "performance"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        findings: list[Finding] = []
        for node in tree.callables():
            findings.extend(self._check_queries(file.path, node))
            findings.extend(self._check_transaction(file.path, node))
            findings.extend(self._check_cache(file.path, node))
            findings.extend(self._check_loops(file.path, node))
        if "migrations" in file.path:
            findings.extend(self._check_migration(file))
        return findings

    def _finding(
        self,
        type_: str,
        severity: Severity,
        message: str,
        path: str,
        node: SyntaxNode,
        suggestion: str,
    ) -> Finding:
        return Finding(
            type=type_,
            severity=severity,
            message=message,
            file_path=path,
            line=node.start_line,
            end_line=node.end_line,
            suggestion=suggestion,
        )

    def _check_queries(self, path: str, node: SyntaxNode) -> list[Finding]:
        text = node.text
        findings: list[Finding] = []

        has_get = any(call in text for call in _GET)
        if has_get:
            constrained = (
                any(call in text for call in _WHERE + _LIMIT + _EAGER)
                or "->select(" in text
                or "->orderBy(" in text
            )
            if not constrained:
                findings.append(
                    self._finding(
                        "query_without_limit",
                        Severity.MAJOR,
                        "Query fetches all records without WHERE or LIMIT",
                        path,
                        node,
                        "Add ->where() conditions or ->limit() to prevent loading all records",
                    )
                )

        if "::all()" in text and not _REFERENCE_TABLE.search(text):
            findings.append(
                self._finding(
                    "fetch_all_records",
                    Severity.MAJOR,
                    "Using ::all() loads entire table into memory",
                    path,
                    node,
                    "Use ::get() with where() clause or paginate() for large datasets. "
                    "OK for small reference tables.",
                )
            )

        if _GET_THEN_COUNT.search(text):
            findings.append(
                self._finding(
                    "inefficient_count",
                    Severity.MINOR,
                    "Loading records just to count them",
                    path,
                    node,
                    "Use ->count() directly on query instead of ->get()->count()",
                )
            )

        if "->first()" in text and "->orderBy(" not in text:
            findings.append(
                self._finding(
                    "first_without_order",
                    Severity.MINOR,
                    "Using first() without orderBy() can return unpredictable results",
                    path,
                    node,
                    "Add ->orderBy() before ->first() for consistent results",
                )
            )

        if "->get()" in text and "->select(" not in text:
            if not any(call in text for call in _FILTERS):
                findings.append(
                    self._finding(
                        "select_all_columns",
                        Severity.MINOR,
                        "Query selects all columns (SELECT *)",
                        path,
                        node,
                        "Use ->select(['column1', 'column2']) to fetch only needed columns "
                        "and reduce memory usage",
                    )
                )
        return findings

    def _check_transaction(self, path: str, node: SyntaxNode) -> list[Finding]:
        text = node.text
        writes = (
            len(_CREATE.findall(text)) + len(_UPDATE.findall(text)) + len(_DELETE.findall(text))
        )
        if writes < TRANSACTION_WRITES or any(marker in text for marker in _TRANSACTION):
            return []
        # Writes split across branches do not all run together
        if len(_IF.findall(text)) >= 2 or "else" in text:
            return []
        return [
            self._finding(
                "missing_transaction",
                Severity.MAJOR,
                f"Multiple database modifications ({writes}) without transaction",
                path,
                node,
                "Wrap multiple DB operations in DB::transaction(function() {...}) "
                "for data integrity",
            )
        ]

    def _check_cache(self, path: str, node: SyntaxNode) -> list[Finding]:
        text = node.text
        if any(marker in text for marker in _CACHE):
            return []

        findings: list[Finding] = []
        if any(call in text for call in _EXPENSIVE):
            findings.append(
                self._finding(
                    "missing_cache",
                    Severity.INFO,
                    "Expensive query without caching",
                    path,
                    node,
                    "Consider caching query results: "
                    "Cache::remember('key', $seconds, function() {...})",
                )
            )
        if "::all()" in text and "Controller" in path:
            findings.append(
                self._finding(
                    "uncached_all",
                    Severity.MINOR,
                    "Loading all records without cache in controller",
                    path,
                    node,
                    "Cache frequently accessed data with Cache::remember()",
                )
            )
        return findings

    def _check_loops(self, path: str, node: SyntaxNode) -> list[Finding]:
        loops = node.find_all(NodeKind.LOOP)
        findings: list[Finding] = []

        pushing = next((loop for loop in loops if loop_calls(loop, "array_push")), None)
        if pushing is not None:
            findings.append(
                self._finding(
                    "inefficient_array_build",
                    Severity.MINOR,
                    "Using array_push() in loop is slower than $arr[] = ",
                    path,
                    pushing,
                    "Use $array[] = $value instead of array_push($array, $value)",
                )
            )

        counting = next((loop for loop in loops if loop_calls(loop, "count")), None)
        if counting is not None:
            findings.append(
                self._finding(
                    "count_in_loop",
                    Severity.MINOR,
                    "Calling count() inside loop on each iteration",
                    path,
                    counting,
                    "Store count() result in variable before loop",
                )
            )
        return findings

    def _check_migration(self, file: SourceFile) -> list[Finding]:
        code = file.content
        findings: list[Finding] = []

        modern_foreign_key = "->foreignId(" in code or "->constrained()" in code
        explicit_index = "->index(" in code or "->unique(" in code
        if "->foreign(" in code and not explicit_index and not modern_foreign_key:
            findings.append(
                Finding(
                    type="missing_index",
                    severity=Severity.MAJOR,
                    message="Migration has foreign keys but no explicit indexes",
                    file_path=file.path,
                    line=1,
                    suggestion=(
                        "Add ->index() for foreign key columns, or use "
                        "->foreignId()->constrained() (Laravel 7+)"
                    ),
                )
            )

        date_index = "created_at" in code and "->index" in code
        if "->timestamps()" in code and not date_index:
            findings.append(
                Finding(
                    type="missing_date_index",
                    severity=Severity.INFO,
                    message="Consider adding index on created_at if used for sorting/filtering",
                    file_path=file.path,
                    line=1,
                    suggestion=(
                        "Add $table->index('created_at') if this field is frequently used "
                        "in WHERE or ORDER BY"
                    ),
                )
            )
        return findings
