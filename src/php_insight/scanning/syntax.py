"""Immutable syntax tree for parsed PHP files.

The tree-sitter tree is converted once into frozen ``SyntaxNode`` values so
that analyzers share one read-only tree per file:
    - ``kind`` is a ``NodeKind`` tag used for dispatch
    - ``type`` keeps the raw grammar node type
    - ``text``, ``start_line``, ``end_line`` (1-indexed), ``children``

Analyzers traverse with ``walk()`` or subclass ``NodeVisitor``; ``parameters()``,
``return_type()`` and ``doc_comments()`` read declarations and their docblocks.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional


class NodeKind(Enum):
    """Node categories the analyzers care about."""

    PROGRAM = "program"
    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"
    ENUM = "enum"
    METHOD = "method"
    FUNCTION = "function"
    CLOSURE = "closure"
    COMPOUND_STATEMENT = "compound_statement"
    EXPRESSION_STATEMENT = "expression_statement"
    FUNCTION_CALL = "function_call"
    MEMBER_CALL = "member_call"
    STATIC_CALL = "static_call"
    LOOP = "loop"
    IF = "if"
    PROPERTY = "property"
    NAME = "name"
    QUALIFIED_NAME = "qualified_name"
    STRING = "string"
    COMMENT = "comment"
    ERROR = "error"
    OTHER = "other"


# tree-sitter-php node type -> NodeKind
NODE_KINDS: dict[str, NodeKind] = {
    "program": NodeKind.PROGRAM,
    "class_declaration": NodeKind.CLASS,
    "interface_declaration": NodeKind.INTERFACE,
    "trait_declaration": NodeKind.TRAIT,
    "enum_declaration": NodeKind.ENUM,
    "method_declaration": NodeKind.METHOD,
    "function_definition": NodeKind.FUNCTION,
    "anonymous_function": NodeKind.CLOSURE,
    "anonymous_function_creation_expression": NodeKind.CLOSURE,
    "arrow_function": NodeKind.CLOSURE,
    "compound_statement": NodeKind.COMPOUND_STATEMENT,
    "expression_statement": NodeKind.EXPRESSION_STATEMENT,
    "function_call_expression": NodeKind.FUNCTION_CALL,
    "member_call_expression": NodeKind.MEMBER_CALL,
    "nullsafe_member_call_expression": NodeKind.MEMBER_CALL,
    "scoped_call_expression": NodeKind.STATIC_CALL,
    "foreach_statement": NodeKind.LOOP,
    "for_statement": NodeKind.LOOP,
    "while_statement": NodeKind.LOOP,
    "do_statement": NodeKind.LOOP,
    "if_statement": NodeKind.IF,
    "property_declaration": NodeKind.PROPERTY,
    "name": NodeKind.NAME,
    "qualified_name": NodeKind.QUALIFIED_NAME,
    "string": NodeKind.STRING,
    "encapsed_string": NodeKind.STRING,
    "heredoc": NodeKind.STRING,
    "nowdoc": NodeKind.STRING,
    "comment": NodeKind.COMMENT,
    "ERROR": NodeKind.ERROR,
}

CALLABLE_KINDS = frozenset({NodeKind.METHOD, NodeKind.FUNCTION})
CLASS_LIKE_KINDS = frozenset({NodeKind.CLASS, NodeKind.INTERFACE, NodeKind.TRAIT, NodeKind.ENUM})


def kind_of(node_type: str) -> NodeKind:
    return NODE_KINDS.get(node_type, NodeKind.OTHER)


@dataclass(frozen=True)
class SyntaxNode:
    """A read-only syntax tree node.

    Attributes:
        kind: Node category (tagged variant)
        type: Raw grammar node type (e.g. "method_declaration")
        start_line: Starting line number (1-indexed)
        end_line: Ending line number (1-indexed)
        start_byte: Offset of the node's first byte in the source
        end_byte: Offset one past the node's last byte
        children: Child nodes in source order
    """

    kind: NodeKind
    type: str
    start_line: int
    end_line: int
    start_byte: int
    end_byte: int
    children: tuple[SyntaxNode, ...] = ()
    _source: bytes = field(default=b"", repr=False, compare=False)

    @property
    def text(self) -> str:
        """Source span covered by this node."""
        return self._source[self.start_byte : self.end_byte].decode("utf-8", errors="replace")

    @property
    def line_span(self) -> int:
        """Rows spanned beyond the first (``end_line - start_line``)."""
        return self.end_line - self.start_line

    def child_of_type(self, *types: str) -> Optional[SyntaxNode]:
        """First direct child whose raw type is one of ``types``."""
        for child in self.children:
            if child.type in types:
                return child
        return None

    def find_all(self, *kinds: NodeKind) -> list[SyntaxNode]:
        """All nodes (including self) of the given kinds, in pre-order."""
        wanted = set(kinds)
        return [node for node in walk(self) if node.kind in wanted]

    @property
    def name(self) -> str:
        """Declared name of a class-like, method or function node.

        Returns "anonymous" when the node has no ``name`` child.
        """
        child = self.child_of_type("name")
        return child.text if child is not None else "anonymous"


@dataclass(frozen=True)
class SyntaxTree:
    """Parse result for one file."""

    path: str
    root: SyntaxNode
    has_error: bool = False

    def callables(self) -> list[SyntaxNode]:
        """Method and top-level function declarations, in source order."""
        return self.root.find_all(NodeKind.METHOD, NodeKind.FUNCTION)

    def methods(self) -> list[SyntaxNode]:
        return self.root.find_all(NodeKind.METHOD)

    def classes(self) -> list[SyntaxNode]:
        return self.root.find_all(*CLASS_LIKE_KINDS)


def walk(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Pre-order traversal without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def call_name(node: SyntaxNode) -> str:
    """Called function name of a FUNCTION_CALL node, without namespace.

    ``\\eval($x)`` and ``eval($x)`` both give "eval"; dynamic calls such as
    ``$fn()`` give "".
    """
    for child in node.children:
        if child.kind is NodeKind.NAME:
            return child.text
        if child.kind is NodeKind.QUALIFIED_NAME:
            return child.text.rsplit("\\", 1)[-1]
    return ""


# Grammar node types of declared types and parameters
TYPE_NODE_TYPES = frozenset(
    {
        "named_type",
        "primitive_type",
        "optional_type",
        "union_type",
        "intersection_type",
        "disjunctive_normal_form_type",
        "bottom_type",
    }
)
PARAMETER_NODE_TYPES = frozenset(
    {"simple_parameter", "variadic_parameter", "property_promotion_parameter"}
)


@dataclass(frozen=True)
class Parameter:
    """A declared parameter of a method or function."""

    name: str  # "$id"
    type: Optional[str] = None  # declared type text, None when untyped


def parameters(node: SyntaxNode) -> list[Parameter]:
    """Declared parameters of a METHOD/FUNCTION/CLOSURE node, in order."""
    param_list = node.child_of_type("formal_parameters")
    if param_list is None:
        return []

    params: list[Parameter] = []
    for child in param_list.children:
        if child.type not in PARAMETER_NODE_TYPES:
            continue
        variable = child.child_of_type("variable_name")
        if variable is None:
            continue
        declared = child.child_of_type(*TYPE_NODE_TYPES)
        params.append(Parameter(variable.text, declared.text if declared is not None else None))
    return params


def return_type(node: SyntaxNode) -> Optional[str]:
    """Declared return type text of a METHOD/FUNCTION node, or None."""
    declared = node.child_of_type(*TYPE_NODE_TYPES)
    return declared.text if declared is not None else None


def doc_comments(root: SyntaxNode) -> dict[tuple[int, str], str]:
    """Block comments that directly precede a sibling node.

    Keyed by ``(start_byte, type)`` of the documented node, so a class,
    method or property looks its docblock up with ``doc_key(node)``.
    """
    docs: dict[tuple[int, str], str] = {}
    for parent in walk(root):
        previous: Optional[SyntaxNode] = None
        for child in parent.children:
            if previous is not None and previous.kind is NodeKind.COMMENT:
                text = previous.text
                if text.startswith("/*"):
                    docs[doc_key(child)] = text
            previous = child
    return docs


def doc_key(node: SyntaxNode) -> tuple[int, str]:
    return (node.start_byte, node.type)


class NodeVisitor:
    """Dispatches each node of a tree to ``visit_<kind>`` methods.

    Subclasses define handlers such as ``visit_method(self, node)``; the
    dispatch table is built once per instance from the ``NodeKind`` values.
    Nodes without a handler are traversed but otherwise ignored.
    """

    def __init__(self) -> None:
        self._dispatch: dict[NodeKind, Callable[[SyntaxNode], None]] = {}
        for kind in NodeKind:
            handler = getattr(self, f"visit_{kind.value}", None)
            if handler is not None:
                self._dispatch[kind] = handler

    def visit(self, node: SyntaxNode) -> None:
        for current in walk(node):
            handler = self._dispatch.get(current.kind)
            if handler is not None:
                handler(current)
