"""Tree-sitter PHP parser adapter.

Wraps tree-sitter with the tree-sitter-php grammar and converts the result
into the immutable ``SyntaxTree`` used by every analyzer. A file that cannot
be parsed raises ``ParsingError``; it never aborts the run.

Usage:
    parser = PhpParser()
    tree = parser.parse(source_text, "app/Models/User.php")
"""

from __future__ import annotations

from typing import Any

from ..exceptions import ParsingError
from ..logging_config import get_logger
from .syntax import SyntaxNode, SyntaxTree, kind_of

logger = get_logger(__name__)

TREE_SITTER_AVAILABLE = False
_tree_sitter_module: Any = None
_php_grammar: Any = None

try:
    import tree_sitter as _tree_sitter_module  # type: ignore[no-redef]
    import tree_sitter_php as _php_grammar  # type: ignore[no-redef]

    TREE_SITTER_AVAILABLE = True
except ImportError:
    TREE_SITTER_AVAILABLE = False


class PhpParser:
    """Parses PHP source text into a ``SyntaxTree``.

    A tree-sitter ``Parser`` is not safe to share between threads; the
    pipeline creates one ``PhpParser`` per worker.

    Args:
        tolerate_syntax_errors: When False (default), a tree containing ERROR
            or MISSING nodes is reported as a ``ParsingError``.
    """

    def __init__(self, tolerate_syntax_errors: bool = False) -> None:
        self.tolerate_syntax_errors = tolerate_syntax_errors
        self._parser: Any = None

        if not TREE_SITTER_AVAILABLE:
            return

        # language_php() accepts HTML around <?php tags; language_php_only() does not
        language = _tree_sitter_module.Language(_php_grammar.language_php())
        self._parser = _tree_sitter_module.Parser(language)

    @property
    def available(self) -> bool:
        return self._parser is not None

    def parse(self, source: str, path: str = "<string>") -> SyntaxTree:
        """Parse source text.

        Args:
            source: PHP source text
            path: File path, used for error reporting

        Returns:
            SyntaxTree for the file

        Raises:
            ParsingError: If the grammar is unavailable, the text cannot be
                encoded, or the tree has syntax errors and they are not
                tolerated
        """
        if self._parser is None:
            raise ParsingError(path, "tree-sitter PHP grammar is not installed")

        try:
            code_bytes = source.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ParsingError(path, f"encoding error: {e}")

        try:
            ts_tree = self._parser.parse(code_bytes)
        except Exception as e:
            raise ParsingError(path, str(e))
        if ts_tree is None:
            raise ParsingError(path, "parser returned no tree")

        ts_root = ts_tree.root_node
        has_error = bool(ts_root.has_error)
        if has_error and not self.tolerate_syntax_errors:
            line = _first_error_line(ts_root)
            raise ParsingError(path, f"syntax error near line {line}")

        return SyntaxTree(path=path, root=_convert(ts_root, code_bytes), has_error=has_error)


def _convert(ts_root: Any, code_bytes: bytes) -> SyntaxNode:
    """Build frozen SyntaxNodes bottom-up with an explicit stack."""
    stack: list[tuple[Any, Any, list[SyntaxNode]]] = [(ts_root, iter(ts_root.children), [])]
    while True:
        ts_node, children, built = stack[-1]
        child = next(children, None)
        if child is not None:
            stack.append((child, iter(child.children), []))
            continue

        stack.pop()
        node = SyntaxNode(
            kind=kind_of(ts_node.type),
            type=ts_node.type,
            start_line=ts_node.start_point[0] + 1,
            end_line=ts_node.end_point[0] + 1,
            start_byte=ts_node.start_byte,
            end_byte=ts_node.end_byte,
            children=tuple(built),
            _source=code_bytes,
        )
        if not stack:
            return node
        stack[-1][2].append(node)


def _first_error_line(ts_root: Any) -> int:
    stack = [ts_root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return int(node.start_point[0]) + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return 1
