"""Extraction of duplication candidates from syntax trees.

MethodCandidate: one method or function declaration, normalized once.
CodeBlock: one compound or expression statement spanning several lines.

Both skip anything spanning fewer than ``min_lines`` rows, so getters,
setters and one-liners never take part in duplication detection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..scanning.syntax import NodeKind, SyntaxTree
from .normalizer import normalize, tokenize

# Minimum row span (end_line - start_line) for a method or block
MIN_LINES = 5


@dataclass(frozen=True)
class MethodCandidate:
    """A method or function body prepared for comparison.

    Attributes:
        name: Declared name ("anonymous" if the grammar gave none)
        file_path: File the declaration lives in
        body_text: Raw declaration text
        normalized_text: ``normalize(body_text)``
        normalized_tokens: ``tokenize(normalized_text)``
        start_line: First line (1-indexed)
        end_line: Last line (1-indexed)
        line_count: ``end_line - start_line``
    """

    name: str
    file_path: str
    body_text: str = field(repr=False)
    normalized_text: str = field(repr=False)
    normalized_tokens: tuple[str, ...] = field(repr=False)
    start_line: int
    end_line: int
    line_count: int

    @property
    def identity(self) -> tuple[str, int, int, str]:
        return (self.file_path, self.start_line, self.end_line, self.name)

    @property
    def lines(self) -> str:
        return f"{self.start_line}-{self.end_line}"


@dataclass(frozen=True)
class CodeBlock:
    """A multi-line statement block prepared for comparison."""

    file_path: str
    code: str = field(repr=False)
    normalized_text: str = field(repr=False)
    normalized_tokens: tuple[str, ...] = field(repr=False)
    start_line: int
    end_line: int
    line_count: int

    @property
    def identity(self) -> tuple[str, int, int]:
        return (self.file_path, self.start_line, self.end_line)

    @property
    def lines(self) -> str:
        return f"{self.start_line}-{self.end_line}"

    def overlaps(self, other: CodeBlock) -> bool:
        return self.start_line <= other.end_line and self.end_line >= other.start_line


def extract_method_candidates(
    tree: SyntaxTree, min_lines: int = MIN_LINES
) -> list[MethodCandidate]:
    """All method and function declarations spanning at least ``min_lines`` rows."""
    candidates: list[MethodCandidate] = []
    for node in tree.callables():
        if node.line_span < min_lines:
            continue
        body_text = node.text
        normalized = normalize(body_text)
        candidates.append(
            MethodCandidate(
                name=node.name,
                file_path=tree.path,
                body_text=body_text,
                normalized_text=normalized,
                normalized_tokens=tuple(tokenize(normalized)),
                start_line=node.start_line,
                end_line=node.end_line,
                line_count=node.line_span,
            )
        )
    return candidates


def extract_code_blocks(
    tree: SyntaxTree, source: str, min_lines: int = MIN_LINES
) -> list[CodeBlock]:
    """Compound and expression statements spanning at least ``min_lines`` rows.

    Block text is taken as whole source lines so that leading indentation and
    trailing comments on the same lines are part of the block.
    """
    lines = source.split("\n")
    blocks: list[CodeBlock] = []
    for node in tree.root.find_all(NodeKind.COMPOUND_STATEMENT, NodeKind.EXPRESSION_STATEMENT):
        if node.line_span < min_lines:
            continue
        code = "\n".join(lines[node.start_line - 1 : node.end_line])
        normalized = normalize(code)
        blocks.append(
            CodeBlock(
                file_path=tree.path,
                code=code,
                normalized_text=normalized,
                normalized_tokens=tuple(tokenize(normalized)),
                start_line=node.start_line,
                end_line=node.end_line,
                line_count=node.line_span,
            )
        )
    return blocks


_CONFIG_ENTRY = re.compile(r"""['"][a-z_]+['"]\s*=>\s*['"]""")


def is_boilerplate(code: str) -> bool:
    """Route tables, config arrays and migration schemas.

    These look alike by construction and are not treated as duplication.
    """
    if "Route::" in code and any(
        marker in code for marker in ("->group(", "->middleware(", "->prefix(")
    ):
        return True

    if _CONFIG_ENTRY.search(code) and "[" in code and "]" in code:
        return True

    if "$table->" in code and "Schema::" in code:
        return True

    return False
