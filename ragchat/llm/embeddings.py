"""Embedding providers: OpenAI-backed and deterministic offline hashing.

Both return one fixed-dimension vector per input, in input order. A batch
either succeeds completely or raises EmbeddingUnavailableError.
"""

import hashlib
import logging
import math
import re
import time
from typing import Protocol

from openai import AsyncOpenAI

from ragchat.config import Settings
from ragchat.errors import EmbeddingUnavailableError
from ragchat.llm.client import create_openai_client
from ragchat.utils.metrics import metrics

logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)


class EmbeddingProvider(Protocol):
    """Protocol for embedding provider implementations."""

    @property
    def dimensions(self) -> int:
        """Length of every vector this provider returns."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingUnavailableError: On provider or network failure
        """
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts, returning vectors in input order.

        Raises:
            EmbeddingUnavailableError: If any entry could not be embedded
        """
        ...


class HashingEmbeddingProvider:
    """Deterministic bag-of-words hashing embeddings (no API key required).

    Each lowercase word is hashed into a signed bucket; the result is L2
    normalised. Texts sharing vocabulary get high cosine similarity.
    """

    def __init__(self, dimensions: int = 1536) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        return self._vectorize(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self._vectorize(text) for text in texts]

    def _vectorize(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        for word in _WORD_PATTERN.findall(text.lower()):
            digest = hashlib.blake2b(word.encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimensions
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0.0:
            return vector
        return [v / norm for v in vector]


class OpenAIEmbeddingProvider:
    """OpenAI (or Azure OpenAI) embeddings endpoint."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        batch_size: int = 64,
    ) -> None:
        """Initialize provider.

        Args:
            client: Configured AsyncOpenAI / AsyncAzureOpenAI client
            model: Embedding model (or Azure deployment) name
            dimensions: Expected vector length
            batch_size: Maximum inputs per API request
        """
        self.client = client
        self.model = model
        self._dimensions = dimensions
        self.batch_size = max(1, batch_size)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        for offset in range(0, len(texts), self.batch_size):
            batch = texts[offset : offset + self.batch_size]
            vectors.extend(await self._embed_request(batch))
        return vectors

    async def _embed_request(self, batch: list[str]) -> list[list[float]]:
        """One API round trip; results re-ordered by their reported index."""
        kwargs: dict[str, object] = {"model": self.model, "input": batch}
        if self.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self._dimensions

        started = time.perf_counter()
        try:
            response = await self.client.embeddings.create(**kwargs)  # type: ignore[call-overload]
        except Exception as e:
            logger.error(f"Embedding request failed for {len(batch)} input(s): {e}")
            raise EmbeddingUnavailableError(f"Embedding request failed: {e}") from e
        finally:
            metrics.record_embedding_latency(
                "openai", (time.perf_counter() - started) * 1000
            )

        by_index: dict[int, list[float]] = {}
        for item in response.data:
            by_index[item.index] = list(item.embedding)

        if sorted(by_index) != list(range(len(batch))):
            raise EmbeddingUnavailableError(
                f"Embedding response covered indexes {sorted(by_index)} "
                f"for {len(batch)} input(s)"
            )

        ordered = [by_index[i] for i in range(len(batch))]
        for vector in ordered:
            if len(vector) != self._dimensions:
                raise EmbeddingUnavailableError(
                    f"Embedding has {len(vector)} dimensions, expected {self._dimensions}"
                )
        return ordered


def get_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Factory function to get embedding provider based on config.

    Returns:
        OpenAIEmbeddingProvider for openai/azure, HashingEmbeddingProvider for stub
    """
    if settings.llm_provider == "stub":
        logger.warning("LLM provider is stub, using hashing embeddings")
        return HashingEmbeddingProvider(dimensions=settings.embedding_dimensions)

    return OpenAIEmbeddingProvider(
        create_openai_client(settings),
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        batch_size=settings.embedding_batch_size,
    )
