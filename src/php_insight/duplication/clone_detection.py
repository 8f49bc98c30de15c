"""Hash-bucketed duplicate detection over method candidates and code blocks.

Candidates are bucketed by an MD5 digest of their normalized text and only
compared within a bucket, which keeps the work proportional to the bucket
sizes instead of O(n²) over the corpus:

    1. bucket_by_hash(candidates)
    2. pairwise Jaccard inside each bucket of size > 1
    3. keep pairs with score >= threshold, each unordered pair once

Known limitation: near-duplicates whose normalized text differs by even one
token hash differently and are never compared. ``bucketed=False`` disables
bucketing for small candidate sets (one file's own methods).
"""

from __future__ import annotations

import hashlib
import itertools
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .candidates import CodeBlock, MethodCandidate, is_boilerplate
from .similarity import SimilarityResult, jaccard_similarity

# Jaccard score at or above which two candidates are duplicates
SIMILARITY_THRESHOLD = 0.85

Candidate = TypeVar("Candidate", bound=Union[MethodCandidate, CodeBlock])


@dataclass(frozen=True)
class DuplicatePair(Generic[Candidate]):
    """Two candidates judged to be duplicates.

    ``first`` sorts before ``second`` by (file_path, start_line).
    """

    first: Candidate
    second: Candidate
    similarity: SimilarityResult

    @property
    def key(self) -> frozenset:
        return frozenset((self.first.identity, self.second.identity))

    @property
    def is_cross_file(self) -> bool:
        return self.first.file_path != self.second.file_path

    @property
    def percent(self) -> int:
        return round(self.similarity.score * 100)


def structural_hash(normalized_text: str) -> str:
    return hashlib.md5(normalized_text.encode("utf-8")).hexdigest()


def bucket_by_hash(candidates: Iterable[Candidate]) -> OrderedDict[str, list[Candidate]]:
    """Group candidates by structural hash, preserving first-seen order."""
    buckets: OrderedDict[str, list[Candidate]] = OrderedDict()
    for candidate in candidates:
        buckets.setdefault(structural_hash(candidate.normalized_text), []).append(candidate)
    return buckets


def _ordered(a: Candidate, b: Candidate) -> tuple[Candidate, Candidate]:
    if (b.file_path, b.start_line) < (a.file_path, a.start_line):
        return b, a
    return a, b


def _compare_all(
    group: Sequence[Candidate],
    threshold: float,
    seen: set[frozenset],
) -> list[DuplicatePair[Candidate]]:
    pairs: list[DuplicatePair[Candidate]] = []
    for a, b in itertools.combinations(group, 2):
        if a.identity == b.identity:
            continue
        key = frozenset((a.identity, b.identity))
        if key in seen:
            continue
        seen.add(key)

        result = jaccard_similarity(a.normalized_tokens, b.normalized_tokens)
        if result.score >= threshold:
            first, second = _ordered(a, b)
            pairs.append(DuplicatePair(first=first, second=second, similarity=result))
    return pairs


def find_similar_pairs(
    candidates: Sequence[Candidate],
    threshold: float = SIMILARITY_THRESHOLD,
    bucketed: bool = True,
) -> list[DuplicatePair[Candidate]]:
    """Find duplicate pairs among candidates.

    Args:
        candidates: Method candidates or code blocks
        threshold: Minimum Jaccard score to report
        bucketed: Compare only within structural-hash buckets. When False,
            every pair is compared (quadratic; for small inputs only).

    Returns:
        Pairs in discovery order, each unordered pair at most once
    """
    seen: set[frozenset] = set()
    if not bucketed:
        return _compare_all(candidates, threshold, seen)

    pairs: list[DuplicatePair[Candidate]] = []
    for group in bucket_by_hash(candidates).values():
        if len(group) > 1:
            pairs.extend(_compare_all(group, threshold, seen))
    return pairs


def find_duplicate_blocks(
    blocks: Sequence[CodeBlock],
    threshold: float = SIMILARITY_THRESHOLD,
) -> list[DuplicatePair[CodeBlock]]:
    """Duplicate code blocks within one file.

    Skips pairs whose line ranges overlap (a block and its own nested
    statements) and pairs where both blocks are route/config/migration
    boilerplate.
    """
    seen: set[frozenset] = set()
    pairs: list[DuplicatePair[CodeBlock]] = []
    for a, b in itertools.combinations(blocks, 2):
        if a.identity == b.identity or a.overlaps(b):
            continue
        key = frozenset((a.identity, b.identity))
        if key in seen:
            continue
        seen.add(key)

        if is_boilerplate(a.code) and is_boilerplate(b.code):
            continue

        result = jaccard_similarity(a.normalized_tokens, b.normalized_tokens)
        if result.score >= threshold:
            first, second = _ordered(a, b)
            pairs.append(DuplicatePair(first=first, second=second, similarity=result))
    return pairs
