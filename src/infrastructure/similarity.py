# src/infrastructure/similarity.py

from typing import List, Sequence
import numpy as np

from src.domain.errors import ConfigurationError, DimensionMismatchError
from src.domain.models import Document, SimilarityResult


DEFAULT_THRESHOLD = 0.5
DEFAULT_LIMIT = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    dot(a, b) / (|a| * |b|).

    No special case for zero vectors: the result is NaN, and callers
    that can see them must guard for it.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(
            f"Embeddings must have the same dimension: {a.size} != {b.size}"
        )

    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


def rank_by_similarity(
    query_embedding: Sequence[float],
    documents: Sequence[Document],
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> List[SimilarityResult]:
    """
    Score every document against the query, keep those at or above
    `threshold`, best first, at most `limit` of them.

    Equal scores keep their input order (sorted() is stable).
    NaN scores never pass the threshold.
    """
    if limit < 0:
        raise ConfigurationError(f"limit cannot be negative, got {limit}.")

    scored = [
        SimilarityResult(
            document=document,
            similarity=cosine_similarity(query_embedding, document.embedding),
        )
        for document in documents
    ]
    survivors = [result for result in scored if result.similarity >= threshold]
    survivors = sorted(survivors, key=lambda result: result.similarity, reverse=True)
    return survivors[:limit]
