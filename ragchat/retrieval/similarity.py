"""Cosine similarity and deterministic top-k ranking.

Linear scan over every candidate; suitable for single-knowledge-base corpora,
not for large collections.
"""

from collections.abc import Iterable, Sequence
from uuid import UUID

import numpy as np

from ragchat.errors import DimensionMismatchError
from ragchat.models.docs import ScoredChunk


def check_dimension(vector: Sequence[float], expected: int) -> None:
    """Raise DimensionMismatchError unless len(vector) == expected."""
    if len(vector) != expected:
        raise DimensionMismatchError(
            f"Vector has {len(vector)} dimensions, expected {expected}"
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    check_dimension(b, len(a))
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank_top_k(
    query: Sequence[float],
    candidates: Iterable[tuple[UUID, Sequence[float]]],
    k: int,
) -> list[ScoredChunk]:
    """Rank candidates by cosine similarity to the query.

    Args:
        query: Query vector
        candidates: (chunk_id, vector) pairs
        k: Number of results (k <= 0 returns [])

    Returns:
        Up to k ScoredChunk, descending score, ties by ascending chunk_id

    Raises:
        DimensionMismatchError: If any candidate differs in length from query
    """
    if k <= 0:
        return []

    items = list(candidates)
    if not items:
        return []

    dim = len(query)
    for _chunk_id, vector in items:
        check_dimension(vector, dim)

    matrix = np.asarray([vector for _, vector in items], dtype=np.float64)
    q = np.asarray(query, dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)

    scored = [
        ScoredChunk(chunk_id=chunk_id, score=float(score))
        for (chunk_id, _), score in zip(items, scores)
    ]
    scored.sort(key=lambda s: (-s.score, s.chunk_id))
    return scored[:k]
