"""Data models for the scanning layer."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class SourceFile:
    """One PHP file read for this run.

    Attributes:
        path: Path relative to the analysis root (as reported in findings)
        content: Decoded file content
    """

    path: str
    content: str

    @property
    def line_count(self) -> int:
        return self.content.count("\n") + 1 if self.content else 0


class CorpusSnapshot(Mapping[str, str]):
    """Read-only ``path -> content`` view of every file in the run.

    Built once, before any analyzer executes, and never updated afterwards.
    Cross-file analyzers (duplication across files, table conflicts) read it;
    nothing writes to it.
    """

    __slots__ = ("_files",)

    def __init__(self, files: Mapping[str, str] | None = None):
        self._files = MappingProxyType(dict(files or {}))

    @classmethod
    def from_sources(cls, sources: Iterable[SourceFile]) -> CorpusSnapshot:
        return cls({source.path: source.content for source in sources})

    def __getitem__(self, path: str) -> str:
        return self._files[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"CorpusSnapshot({len(self)} files)"

    def sources(self) -> Iterator[SourceFile]:
        """Iterate the snapshot as SourceFile values, in insertion order."""
        for path, content in self._files.items():
            yield SourceFile(path=path, content=content)

    def others(self, path: str) -> Iterator[tuple[str, str]]:
        """Iterate every ``(path, content)`` pair except ``path`` itself."""
        for other_path, content in self._files.items():
            if other_path != path:
                yield other_path, content
