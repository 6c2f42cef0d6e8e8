"""Tests for cosine similarity, top-k ranking and the in-memory vector index."""

import uuid

import pytest

from ragchat.db.inmemory import InMemoryVectorIndex
from ragchat.errors import DimensionMismatchError
from ragchat.retrieval.similarity import cosine_similarity, rank_top_k


def test_cosine_similarity_basic() -> None:
    """Parallel, orthogonal and opposite vectors."""
    assert cosine_similarity([1.0, 0.0], [2.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)


def test_cosine_similarity_zero_norm_is_zero() -> None:
    """A zero vector scores 0.0 instead of dividing by zero."""
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0


def test_cosine_similarity_dimension_mismatch() -> None:
    """Vectors of different lengths are rejected, never padded."""
    with pytest.raises(DimensionMismatchError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_rank_top_k_ties_by_chunk_id() -> None:
    """Equal scores are ordered by ascending chunk_id."""
    high = uuid.UUID("ffffffff-0000-0000-0000-000000000000")
    low = uuid.UUID("00000000-0000-0000-0000-000000000001")
    other = uuid.uuid4()

    ranked = rank_top_k([1.0, 0.0], [(high, [1.0, 0.0]), (other, [0.0, 1.0]), (low, [2.0, 0.0])], 3)

    assert [s.chunk_id for s in ranked] == [low, high, other]


@pytest.mark.parametrize("k", [0, -3])
def test_rank_top_k_non_positive_k(k: int) -> None:
    """k <= 0 returns an empty list."""
    assert rank_top_k([1.0], [(uuid.uuid4(), [1.0])], k) == []


@pytest.mark.asyncio
async def test_find_top_k_returns_all_when_k_exceeds_size() -> None:
    """k=5 against two vectors returns both, best first."""
    index = InMemoryVectorIndex(dimensions=3)
    near, far = uuid.uuid4(), uuid.uuid4()
    index.upsert(far, [0.0, 1.0, 0.0])
    index.upsert(near, [1.0, 0.1, 0.0])

    results = await index.find_top_k([1.0, 0.0, 0.0], k=5)

    assert [r.chunk_id for r in results] == [near, far]
    assert results[0].score > results[1].score


@pytest.mark.asyncio
async def test_find_top_k_is_idempotent() -> None:
    """Repeated queries return identical results."""
    index = InMemoryVectorIndex(dimensions=2)
    for i in range(10):
        index.upsert(uuid.uuid4(), [float(i), float(10 - i)])

    first = await index.find_top_k([0.3, 0.7], k=4)
    second = await index.find_top_k([0.3, 0.7], k=4)

    assert first == second
    assert len(first) == 4


@pytest.mark.asyncio
async def test_index_rejects_wrong_dimensions() -> None:
    """Both inserts and queries must match the configured dimension."""
    index = InMemoryVectorIndex(dimensions=3)

    with pytest.raises(DimensionMismatchError):
        index.upsert(uuid.uuid4(), [1.0, 2.0])

    index.upsert(uuid.uuid4(), [1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatchError):
        await index.find_top_k([1.0, 2.0], k=1)


@pytest.mark.asyncio
async def test_remove_drops_vectors() -> None:
    """Removed chunks are no longer returned."""
    index = InMemoryVectorIndex(dimensions=2)
    keep, drop = uuid.uuid4(), uuid.uuid4()
    index.upsert(keep, [1.0, 0.0])
    index.upsert(drop, [1.0, 0.0])

    index.remove([drop, uuid.uuid4()])

    assert len(index) == 1
    assert [r.chunk_id for r in await index.find_top_k([1.0, 0.0], k=5)] == [keep]
