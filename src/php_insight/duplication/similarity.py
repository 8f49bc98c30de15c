"""Similarity metrics for normalized code.

Two metrics:
    Jaccard over token sets (primary, used for method/block duplication):
        J(A, B) = |set(A) & set(B)| / |set(A) | set(B)|
    Levenshtein edit distance (secondary, string level, used for
    class/method name and body comparisons across classes):
        sim(a, b) = (max_len - distance) / max_len

Jaccard treats each token sequence as a set: a token repeated in one
sequence contributes once. It is an approximation, not sequence alignment.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SimilarityResult:
    """Score in [0, 1] and the size of the token union it was computed over."""

    score: float
    tokens_compared: int

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"similarity score out of range: {self.score}")


NO_SIMILARITY = SimilarityResult(score=0.0, tokens_compared=0)

# First band width tried by a bounded edit-distance search
INITIAL_BAND = 16


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def jaccard_similarity(tokens_a: Iterable[str], tokens_b: Iterable[str]) -> SimilarityResult:
    """Jaccard similarity of two token sequences.

    Returns a zero score when either side is empty. Symmetric, and 1.0 for
    identical non-empty inputs.
    """
    set_a = set(tokens_a)
    set_b = set(tokens_b)
    if not set_a or not set_b:
        return NO_SIMILARITY

    union = len(set_a | set_b)
    if union == 0:
        return NO_SIMILARITY

    intersection = len(set_a & set_b)
    return SimilarityResult(score=_clamp(intersection / union), tokens_compared=union)


def levenshtein_distance(a: str, b: str, max_distance: Optional[int] = None) -> int:
    """Minimum number of single-character edits turning ``a`` into ``b``.

    Classic dynamic programming, keeping two rows: O(len(a) * len(b)) time,
    O(min(len(a), len(b))) memory.

    With ``max_distance`` only the diagonal band of that width is filled and
    the search stops as soon as every cell of a row exceeds it; any distance
    above ``max_distance`` is returned as ``max_distance + 1``.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if max_distance is not None:
        if max_distance < 0:
            raise ValueError(f"max_distance must be >= 0, got {max_distance}")
        if len(a) - len(b) > max_distance:
            return max_distance + 1
    if not b:
        return len(a)
    if max_distance is None:
        return _full_distance(a, b)
    return _banded_distance(a, b, max_distance)


def _full_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def _banded_distance(a: str, b: str, limit: int) -> int:
    over = limit + 1
    width = len(b)
    previous = [j if j <= limit else over for j in range(width + 1)]
    for i, char_a in enumerate(a, start=1):
        current = [over] * (width + 1)
        current[0] = i if i <= limit else over
        row_min = current[0]
        for j in range(max(1, i - limit), min(width, i + limit) + 1):
            value = min(
                previous[j - 1] + (char_a != b[j - 1]),
                previous[j] + 1,
                current[j - 1] + 1,
                over,
            )
            current[j] = value
            if value < row_min:
                row_min = value
        if row_min > limit:
            return over
        previous = current
    return min(previous[-1], over)


def levenshtein_similarity(a: str, b: str, min_similarity: float = 0.0) -> float:
    """``(max_len - distance) / max_len``; 0.0 when either string is empty.

    A positive ``min_similarity`` bounds the edit-distance search: pairs that
    cannot reach it score 0.0 without the full table being computed.
    """
    if not a or not b:
        return 0.0
    max_len = max(len(a), len(b))
    if min_similarity <= 0.0:
        return _clamp((max_len - levenshtein_distance(a, b)) / max_len)

    limit = int((1.0 - min_similarity) * max_len + 1e-9)
    # widen the band from narrow to ``limit``: close pairs finish in O(n * distance)
    band = min(INITIAL_BAND, limit)
    while True:
        distance = levenshtein_distance(a, b, max_distance=band)
        if distance <= band:
            return _clamp((max_len - distance) / max_len)
        if band >= limit:
            return 0.0
        band = min(band * 2, limit)
