"""Analyzer plugin contract.

Every rule module subclasses ``Analyzer``. The registry calls ``prepare``
once per run, after the corpus snapshot is complete, and then ``analyze``
once per parsed file. Analyzers read the tree and the snapshot and return
findings; they never mutate either.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..models import Finding

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree
    from ..scanning.treesitter_parser import PhpParser


class Analyzer(ABC):
    """Base class for rule analyzers."""

    name: str = "analyzer"

    def prepare(self, corpus: CorpusSnapshot, parser: PhpParser) -> None:
        """Build cross-file state from the complete corpus. No-op by default."""

    @abstractmethod
    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        """Return findings for one file."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
