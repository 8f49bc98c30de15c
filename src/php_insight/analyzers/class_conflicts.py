"""CLASS_CONFLICTS: architecture problems between and inside classes.

Finding types:
    multiple_classes_for_table  critical  two or more models declare the same $table
    duplicate_methods           major     same method name and parameters in another
                                          class with a near-identical body
    conditional_class_type      critical  ``return $x ? A::class : B::class``
    long_method_chaining        minor     long ``$this->a()->b()->c()->d()`` chains
    unresolved_todo             major     ``@todo`` annotations

The table index and the cross-class duplicate matches cover the whole corpus
and are built once in ``prepare``, where each pair of same-named methods is
scored once; ``analyze`` only reads them.
"""

from __future__ import annotations

import itertools
import re
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..duplication.candidates import MIN_LINES
from ..duplication.normalizer import normalize, tokenize
from ..duplication.similarity import jaccard_similarity, levenshtein_similarity
from ..exceptions import ParsingError
from ..logging_config import get_logger
from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, SyntaxNode
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree
    from ..scanning.treesitter_parser import PhpParser

logger = get_logger(__name__)

_TABLE = re.compile(r"""protected\s+\$table\s*=\s*['"](\w+)['"]""")
_CLASS_NAME = re.compile(r"\bclass\s+(\w+)")
_CONDITIONAL_CLASS = re.compile(r"return\s+.*\?\s*[\w\\]+::class\s*:\s*[\w\\]+::class")
_TODO = re.compile(r"@todo\s+(.+)", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

# Bodies longer than this are compared by token-set Jaccard instead of edit distance
LEVENSHTEIN_MAX_CHARS = 1000


@dataclass(frozen=True)
class MethodRecord:
    """A method declaration as seen by the cross-class comparison."""

    name: str
    signature: str
    body: str
    class_name: str
    file_path: str
    start_line: int
    end_line: int


def class_name_of(code: str) -> Optional[str]:
    match = _CLASS_NAME.search(code)
    return match.group(1) if match else None


def table_of(code: str) -> Optional[str]:
    match = _TABLE.search(code)
    return match.group(1) if match else None


def method_records(tree: SyntaxTree, min_lines: int = MIN_LINES) -> list[MethodRecord]:
    """Class methods spanning at least ``min_lines`` rows, with their owning class."""
    owners: dict[int, str] = {}
    # pre-order: a nested class overwrites the owner of its own methods
    for class_node in tree.classes():
        for method in class_node.find_all(NodeKind.METHOD):
            owners[method.start_byte] = class_node.name

    records: list[MethodRecord] = []
    for method in tree.methods():
        if method.line_span < min_lines:
            continue
        params = method.child_of_type("formal_parameters")
        signature = _WHITESPACE.sub(" ", params.text).strip() if params is not None else "()"
        records.append(
            MethodRecord(
                name=method.name,
                signature=signature,
                body=normalize(method.text),
                class_name=owners.get(method.start_byte, "Unknown"),
                file_path=tree.path,
                start_line=method.start_line,
                end_line=method.end_line,
            )
        )
    return records


def bag_distance(a: str, b: str) -> int:
    """Lower bound on the edit distance from character counts alone."""
    counts_a, counts_b = Counter(a), Counter(b)
    return max(sum((counts_a - counts_b).values()), sum((counts_b - counts_a).values()))


def body_similarity(a: str, b: str, threshold: float) -> float:
    """Levenshtein similarity of two normalized bodies, pruned by cheap bounds.

    Scores below ``threshold`` may be reported as 0. Identical bodies score
    1 without the DP. ``levenshtein_similarity`` can never exceed
    ``shorter / longer`` nor ``1 - bag_distance / longer``, so pairs failing
    either bound score 0 before any edit distance is computed. The distance
    search itself stops once the pair cannot reach ``threshold``.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    shorter, longer = sorted((len(a), len(b)))
    if shorter / longer < threshold:
        return 0.0
    if longer > LEVENSHTEIN_MAX_CHARS:
        return jaccard_similarity(tokenize(a), tokenize(b)).score
    if (longer - bag_distance(a, b)) / longer < threshold:
        return 0.0
    return levenshtein_similarity(a, b, min_similarity=threshold)


class ClassConflictAnalyzer(Analyzer):
    """Cross-class and architecture checks for PHP/Laravel classes.

    Args:
        method_similarity: Body similarity above which two same-named methods
            in different classes are duplicates
        max_chain_length: Number of chained ``->`` calls on ``$this`` that
            is reported as long chaining
        min_lines: Methods spanning fewer rows are not compared across classes
    """

    name = "class_conflicts"

    def __init__(
        self,
        method_similarity: float = 0.7,
        max_chain_length: int = 4,
        min_lines: int = MIN_LINES,
    ) -> None:
        self.method_similarity = method_similarity
        self.max_chain_length = max_chain_length
        self.min_lines = min_lines
        self._chain = re.compile(
            r"\$this(?:\s*->\s*\w+(?:\s*\([^()]*\))?){%d,}" % max_chain_length
        )
        self._corpus: Optional[CorpusSnapshot] = None
        self._tables: dict[str, list[tuple[str, str]]] = {}
        self._duplicates: dict[str, list[tuple[MethodRecord, list[MethodRecord]]]] = {}

    def prepare(self, corpus: CorpusSnapshot, parser: PhpParser) -> None:
        self._index_tables(corpus)

        methods: dict[str, list[MethodRecord]] = defaultdict(list)
        for source in corpus.sources():
            try:
                tree = parser.parse(source.content, source.path)
            except ParsingError as e:
                logger.debug(f"Method index skips {source.path}: {e.reason}")
                continue
            for record in method_records(tree, self.min_lines):
                methods[record.name].append(record)

        matches: dict[MethodRecord, list[MethodRecord]] = defaultdict(list)
        compared = 0
        for group in methods.values():
            for a, b in itertools.combinations(group, 2):
                if a.file_path == b.file_path or a.signature != b.signature:
                    continue
                compared += 1
                if body_similarity(a.body, b.body, self.method_similarity) > self.method_similarity:
                    matches[a].append(b)
                    matches[b].append(a)

        duplicates: dict[str, list[tuple[MethodRecord, list[MethodRecord]]]] = defaultdict(list)
        for group in methods.values():
            for record in group:
                if record in matches:
                    duplicates[record.file_path].append((record, matches[record]))
        for entries in duplicates.values():
            entries.sort(key=lambda entry: entry[0].start_line)
        self._duplicates = dict(duplicates)
        logger.debug(
            f"Indexed {len(self._tables)} tables; compared {compared} method pairs, "
            f"{len(matches)} methods have duplicates"
        )

    def _index_tables(self, corpus: CorpusSnapshot) -> None:
        tables: dict[str, list[tuple[str, str]]] = defaultdict(list)
        for path, content in corpus.items():
            table = table_of(content)
            if table is not None:
                tables[table].append((path, class_name_of(content) or "Unknown"))
        self._tables = dict(tables)
        self._duplicates = {}
        self._corpus = corpus

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        if self._corpus is not corpus:
            # prepare() was not run for this corpus; method comparison needs a parser
            logger.debug("Class conflict index built without method index")
            self._index_tables(corpus)

        findings: list[Finding] = []
        findings.extend(self._check_shared_table(file))
        findings.extend(self._check_duplicate_methods(file))
        for method in tree.methods():
            findings.extend(self._check_method_body(file.path, method))
        findings.extend(self._check_todos(file))
        return findings

    def _check_shared_table(self, file: SourceFile) -> list[Finding]:
        table = table_of(file.content)
        if table is None:
            return []
        others = [
            class_name for path, class_name in self._tables.get(table, []) if path != file.path
        ]
        if not others:
            return []

        class_name = class_name_of(file.content) or "Unknown"
        return [
            Finding(
                type="multiple_classes_for_table",
                severity=Severity.CRITICAL,
                message=(
                    f'Multiple classes ({len(others) + 1}) use the same table "{table}": '
                    f"{class_name}"
                ),
                file_path=file.path,
                line=1,
                end_line=1,
                suggestion=(
                    "Consider using Single Table Inheritance (STI) or separate tables. "
                    f"Conflicting classes: {', '.join(others)}. This creates confusion "
                    "about which class to use."
                ),
                refactor_info={
                    "pattern": "Multiple classes for one table",
                    "table": table,
                    "conflictingClasses": [class_name, *others],
                    "recommendation": "Use Strategy Pattern or separate tables",
                },
            )
        ]

    def _check_duplicate_methods(self, file: SourceFile) -> list[Finding]:
        findings: list[Finding] = []
        for record, matches in self._duplicates.get(file.path, []):
            classes = sorted({other.class_name for other in matches})
            findings.append(
                Finding(
                    type="duplicate_methods",
                    severity=Severity.MAJOR,
                    message=f'Method "{record.name}" is duplicated in classes',
                    file_path=record.file_path,
                    line=record.start_line,
                    end_line=record.end_line,
                    suggestion=(
                        "Extract common logic to parent class or trait. Duplicate exists "
                        f"in: {', '.join(classes)}"
                    ),
                    refactor_info={
                        "pattern": "Code duplication between classes",
                        "methodName": record.name,
                        "duplicates": [
                            {"file": other.file_path, "class": other.class_name}
                            for other in matches
                        ],
                        "recommendation": "Extract to parent class or use trait",
                    },
                )
            )
        return findings

    def _check_method_body(self, file_path: str, method: SyntaxNode) -> list[Finding]:
        text = method.text
        method_name = method.name
        findings: list[Finding] = []

        if _CONDITIONAL_CLASS.search(text):
            findings.append(
                Finding(
                    type="conditional_class_type",
                    severity=Severity.CRITICAL,
                    message=f'Method "{method_name}" uses conditional class selection',
                    file_path=file_path,
                    line=method.start_line,
                    end_line=method.end_line,
                    suggestion=(
                        "Replace conditional class selection with abstract methods. "
                        "Use polymorphism instead of conditionals."
                    ),
                    refactor_info={
                        "pattern": "Conditional class type selection",
                        "methodName": method_name,
                        "recommendation": (
                            "Use abstract methods in base class, override in children"
                        ),
                    },
                )
            )

        if self._chain.search(text):
            findings.append(
                Finding(
                    type="long_method_chaining",
                    severity=Severity.MINOR,
                    message="Long method chaining detected",
                    file_path=file_path,
                    line=method.start_line,
                    end_line=method.end_line,
                    suggestion=(
                        "Consider extracting intermediate results into variables for "
                        "better readability and debugging."
                    ),
                    refactor_info={
                        "pattern": "Long method chaining",
                        "recommendation": "Break chaining into intermediate variables",
                    },
                )
            )
        return findings

    def _check_todos(self, file: SourceFile) -> list[Finding]:
        findings: list[Finding] = []
        for line_number, line in enumerate(file.content.split("\n"), start=1):
            match = _TODO.search(line)
            if match is None:
                continue
            todo = match.group(1).strip()
            findings.append(
                Finding(
                    type="unresolved_todo",
                    severity=Severity.MAJOR,
                    message=f"Unresolved TODO: {todo}",
                    file_path=file.path,
                    line=line_number,
                    end_line=line_number,
                    suggestion=(
                        "TODO comments in production code indicate technical debt. "
                        "Either implement the feature or remove the TODO."
                    ),
                    refactor_info={
                        "pattern": "Technical debt indicator",
                        "todo": todo,
                        "recommendation": "Implement the feature or remove TODO",
                    },
                )
            )
        return findings
