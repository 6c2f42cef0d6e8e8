"""Retrieval context assembly: query -> embedding -> top-k chunks -> text."""

import logging

from ragchat.db.repositories import DocumentStore
from ragchat.llm.embeddings import EmbeddingProvider
from ragchat.models.docs import ChunkMatch
from ragchat.utils.metrics import metrics

logger = logging.getLogger(__name__)

CONTEXT_DELIMITER = "\n\n---\n\n"


class RagService:
    """Finds the chunks most relevant to a query and joins their text."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        default_k: int = 3,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.default_k = default_k

    async def search(self, query: str, k: int | None = None) -> list[ChunkMatch]:
        """Rank stored chunks against the query.

        Args:
            query: Free-text query
            k: Number of chunks (defaults to default_k)

        Returns:
            ChunkMatch list in descending score order

        Raises:
            EmbeddingUnavailableError: If the query cannot be embedded
            DimensionMismatchError: If the query vector does not fit the index
        """
        limit = self.default_k if k is None else k
        if not query.strip() or limit <= 0:
            return []

        query_vector = await self._embedder.embed(query)
        scored = await self._store.index.find_top_k(query_vector, limit)
        if not scored:
            return []

        chunks = await self._store.get_chunks([s.chunk_id for s in scored])
        by_id = {chunk.chunk_id: chunk for chunk in chunks}

        # Index and chunk table can briefly disagree during a concurrent delete
        return [
            ChunkMatch(chunk=by_id[s.chunk_id], score=s.score)
            for s in scored
            if s.chunk_id in by_id
        ]

    async def get_relevant_context(self, query: str, *, k: int | None = None) -> str:
        """Join the top-k chunk texts, or return "" when nothing usable is found.

        Failures while embedding or searching are logged and yield "".
        """
        if not query.strip():
            return ""

        stage = "embed"
        try:
            query_vector = await self._embedder.embed(query)
            stage = "search"
            scored = await self._store.index.find_top_k(
                query_vector, self.default_k if k is None else k
            )
            if not scored:
                return ""
            stage = "fetch"
            chunks = await self._store.get_chunks([s.chunk_id for s in scored])
        except Exception as e:
            logger.warning(f"Retrieval failed at {stage} stage: {e}")
            metrics.inc_retrieval_failure(stage)
            return ""

        return CONTEXT_DELIMITER.join(chunk.text for chunk in chunks)
