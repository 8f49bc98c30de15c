"""Code normalization, similarity metrics and duplicate detection."""

from .candidates import (
    MIN_LINES,
    CodeBlock,
    MethodCandidate,
    extract_code_blocks,
    extract_method_candidates,
    is_boilerplate,
)
from .clone_detection import (
    SIMILARITY_THRESHOLD,
    DuplicatePair,
    bucket_by_hash,
    find_duplicate_blocks,
    find_similar_pairs,
    structural_hash,
)
from .normalizer import normalize, normalized_tokens, tokenize
from .similarity import (
    SimilarityResult,
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
)

__all__ = [
    "MIN_LINES",
    "SIMILARITY_THRESHOLD",
    "CodeBlock",
    "MethodCandidate",
    "DuplicatePair",
    "SimilarityResult",
    "extract_code_blocks",
    "extract_method_candidates",
    "is_boilerplate",
    "bucket_by_hash",
    "find_duplicate_blocks",
    "find_similar_pairs",
    "structural_hash",
    "normalize",
    "normalized_tokens",
    "tokenize",
    "jaccard_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
]
