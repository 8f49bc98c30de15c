"""PHP source reading and parsing."""

from .models import CorpusSnapshot, SourceFile
from .reader import discover_php_files, read_source_file
from .syntax import NodeKind, NodeVisitor, SyntaxNode, SyntaxTree, walk
from .treesitter_parser import TREE_SITTER_AVAILABLE, PhpParser

__all__ = [
    "CorpusSnapshot",
    "SourceFile",
    "discover_php_files",
    "read_source_file",
    "NodeKind",
    "NodeVisitor",
    "SyntaxNode",
    "SyntaxTree",
    "walk",
    "TREE_SITTER_AVAILABLE",
    "PhpParser",
]
