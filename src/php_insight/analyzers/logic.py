"""LOGIC: nesting depth, cyclomatic complexity and magic numbers.

Finding types:
    high_complexity  major  cyclomatic complexity above ``max_complexity``
    deep_nesting     major  if/loop/try nesting deeper than ``max_nesting_depth``
    magic_number     minor  unexplained integer literals of three or more digits
    logic_question   info   review prompts for non-trivial methods

Complexity is 1 plus one per branch point (if/elseif/else, loops, case,
catch, ternary) and per short-circuit operator. Both are counted on the
syntax tree, so keywords inside strings and comments do not count.
Migrations, seeders and factories get no complexity findings or questions.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import SyntaxNode, walk
from .base import Analyzer
from .laravel import is_scaffolding

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

BRANCH_TYPES = frozenset(
    {
        "if_statement",
        "else_if_clause",
        "else_clause",
        "while_statement",
        "do_statement",
        "for_statement",
        "foreach_statement",
        "case_statement",
        "catch_clause",
        "conditional_expression",
        "&&",
        "||",
        "and",
        "or",
    }
)
NESTING_TYPES = frozenset(
    {
        "if_statement",
        "while_statement",
        "do_statement",
        "for_statement",
        "foreach_statement",
        "try_statement",
    }
)

# HTTP status codes, round numbers and powers of two
COMMON_NUMBERS = frozenset(
    "200 201 204 301 302 400 401 403 404 422 500 503 1000 2000 3000 5000 10000 "
    "100 1024 2048 4096".split()
)
_MAGIC = re.compile(r"\d{3,}")
_ROUND_HUNDRED = re.compile(r"[1-9]00")

NON_LOGIC_METHODS = frozenset({"__construct", "__destruct", "__invoke", "__get", "__set"})
RESPONSE_HELPER_WORDS = (
    "success",
    "error",
    "data",
    "created",
    "notFound",
    "forbidden",
    "unauthorized",
)


def cyclomatic_complexity(node: SyntaxNode) -> int:
    return 1 + sum(1 for child in walk(node) if child.type in BRANCH_TYPES)


def nesting_depth(node: SyntaxNode) -> int:
    """Deepest chain of nested if/loop/try statements under ``node``."""
    deepest = 0
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        for child in current.children:
            child_depth = depth + 1 if child.type in NESTING_TYPES else depth
            deepest = max(deepest, child_depth)
            stack.append((child, child_depth))
    return deepest


def magic_numbers(node: SyntaxNode) -> list[str]:
    """Integer literals that should be named constants, in source order."""
    found: list[str] = []
    for child in walk(node):
        if child.type != "integer":
            continue
        literal = child.text.replace("_", "")
        if not _MAGIC.fullmatch(literal) or literal in COMMON_NUMBERS:
            continue
        # Unix timestamps
        if 10 <= len(literal) <= 13:
            continue
        if _ROUND_HUNDRED.fullmatch(literal):
            continue
        found.append(literal)
    return found


def review_questions(node: SyntaxNode, complexity: int) -> list[str]:
    """Questions a reviewer would ask about a non-trivial method."""
    name = node.name
    text = node.text
    helper = any(word in name for word in RESPONSE_HELPER_WORDS)
    branches = [child for child in walk(node) if child.type in BRANCH_TYPES]
    if name in ("__construct", "__destruct") or (complexity <= 2 and not branches):
        return []

    questions: list[str] = []
    if "null" in text and "??" in text:
        questions.append(
            f"Is the null coalescing operator (??) used correctly at line {node.start_line}?"
        )
    if "array" in text and "count" in text and not helper:
        questions.append(
            "Could array_* functions or Laravel collections be used instead at line "
            f"{node.start_line}?"
        )
    if "DB::" in text and "transaction" not in text:
        questions.append(
            f"Is database transaction handling appropriate at line {node.start_line}?"
        )
    if complexity > 5 and not helper:
        questions.append("Could this complex logic be simplified by extracting methods?")
    if sum(1 for child in branches if child.type == "if_statement") > 3:
        questions.append(
            "Are there multiple conditions that could be extracted into guard clauses?"
        )
    return questions


class LogicAnalyzer(Analyzer):
    """Flags hard-to-follow control flow and unexplained literals."""

    name = "logic"

    def __init__(self, max_nesting_depth: int = 4, max_complexity: int = 10) -> None:
        self.max_nesting_depth = max_nesting_depth
        self.max_complexity = max_complexity

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        scaffolding = is_scaffolding(file.path)
        findings: list[Finding] = []
        for node in tree.callables():
            complexity = cyclomatic_complexity(node)
            if not scaffolding:
                findings.extend(self._check_complexity(file.path, node, complexity))
            if complexity > 2:
                findings.extend(self._check_nesting(file.path, node))
            findings.extend(self._check_magic_numbers(file.path, node))
        return findings

    def _check_complexity(
        self, path: str, node: SyntaxNode, complexity: int
    ) -> list[Finding]:
        findings = [
            Finding(
                type="logic_question",
                severity=Severity.INFO,
                message=question,
                file_path=path,
                line=node.start_line,
                end_line=node.end_line,
                suggestion="Review this logic for clarity and potential improvements",
            )
            for question in review_questions(node, complexity)
        ]

        name = node.name
        exempt = name in NON_LOGIC_METHODS or name.startswith("scope")
        if complexity > self.max_complexity and not exempt:
            findings.append(
                Finding(
                    type="high_complexity",
                    severity=Severity.MAJOR,
                    message=f'High cyclomatic complexity ({complexity}) in "{name}"',
                    file_path=path,
                    line=node.start_line,
                    end_line=node.end_line,
                    suggestion=(
                        "Consider simplifying the logic or extracting parts into "
                        "separate methods"
                    ),
                    refactor_info={
                        "methodName": name,
                        "complexity": complexity,
                        "maxComplexity": self.max_complexity,
                    },
                )
            )
        return findings

    def _check_nesting(self, path: str, node: SyntaxNode) -> list[Finding]:
        depth = nesting_depth(node)
        if depth <= self.max_nesting_depth:
            return []
        return [
            Finding(
                type="deep_nesting",
                severity=Severity.MAJOR,
                message=f"Deep nesting detected (depth: {depth})",
                file_path=path,
                line=node.start_line,
                end_line=node.end_line,
                suggestion="Extract deeply nested code into separate methods",
                refactor_info={"methodName": node.name, "depth": depth},
            )
        ]

    def _check_magic_numbers(self, path: str, node: SyntaxNode) -> list[Finding]:
        numbers = magic_numbers(node)
        if not numbers:
            return []
        return [
            Finding(
                type="magic_number",
                severity=Severity.MINOR,
                message=f"Magic numbers detected: {', '.join(numbers)}",
                file_path=path,
                line=node.start_line,
                end_line=node.end_line,
                suggestion=(
                    "Consider extracting these numbers into named constants or configuration"
                ),
            )
        ]
