"""In-memory implementations of repository interfaces."""

import uuid

from ragchat.docs.ingest import ChunkingConfig, prepare_document
from ragchat.llm.embeddings import EmbeddingProvider
from ragchat.models.docs import Chunk, Document, ScoredChunk
from ragchat.retrieval.similarity import check_dimension, rank_top_k


class InMemoryVectorIndex:
    """In-memory implementation of VectorIndex."""

    def __init__(self, dimensions: int) -> None:
        self._dimensions = dimensions
        self._vectors: dict[uuid.UUID, list[float]] = {}

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def __len__(self) -> int:
        return len(self._vectors)

    def upsert(self, chunk_id: uuid.UUID, vector: list[float]) -> None:
        """Store or replace the vector for a chunk."""
        check_dimension(vector, self._dimensions)
        self._vectors[chunk_id] = list(vector)

    def remove(self, chunk_ids: list[uuid.UUID]) -> None:
        """Drop vectors for the given chunks (unknown ids ignored)."""
        for chunk_id in chunk_ids:
            self._vectors.pop(chunk_id, None)

    async def find_top_k(self, query_vector: list[float], k: int) -> list[ScoredChunk]:
        check_dimension(query_vector, self._dimensions)
        return rank_top_k(query_vector, self._vectors.items(), k)


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStore."""

    def __init__(self, embedder: EmbeddingProvider, chunking: ChunkingConfig) -> None:
        self._embedder = embedder
        self._chunking = chunking
        self._documents: dict[uuid.UUID, Document] = {}
        self._chunks: dict[uuid.UUID, list[Chunk]] = {}
        self._chunks_by_id: dict[uuid.UUID, Chunk] = {}
        self._index = InMemoryVectorIndex(embedder.dimensions)

    @property
    def index(self) -> InMemoryVectorIndex:
        return self._index

    async def upload(self, data: bytes, filename: str, media_type: str) -> Document:
        """Ingest and store a document."""
        prepared = await prepare_document(
            data=data,
            filename=filename,
            media_type=media_type,
            embedder=self._embedder,
            chunking=self._chunking,
        )

        document = prepared.document
        self._documents[document.document_id] = document
        self._chunks[document.document_id] = prepared.chunks
        for chunk, vector in zip(prepared.chunks, prepared.vectors):
            self._chunks_by_id[chunk.chunk_id] = chunk
            self._index.upsert(chunk.chunk_id, vector)

        return document

    async def get(self, document_id: uuid.UUID) -> Document | None:
        """Get document by ID."""
        return self._documents.get(document_id)

    async def list_all(self) -> list[Document]:
        """List documents, newest first."""
        return sorted(self._documents.values(), key=lambda d: d.uploaded_at, reverse=True)

    async def find_by_hash(self, content_hash: str) -> list[Document]:
        """List documents with the given content hash."""
        return [d for d in await self.list_all() if d.content_hash == content_hash]

    async def list_chunks(self, document_id: uuid.UUID) -> list[Chunk]:
        """List a document's chunks in order."""
        return list(self._chunks.get(document_id, []))

    async def get_chunks(self, chunk_ids: list[uuid.UUID]) -> list[Chunk]:
        """Get chunks by id, preserving the requested order."""
        return [self._chunks_by_id[cid] for cid in chunk_ids if cid in self._chunks_by_id]

    async def delete(self, document_id: uuid.UUID) -> None:
        """Delete a document and cascade to its chunks and vectors."""
        chunks = self._chunks.pop(document_id, [])
        chunk_ids = [chunk.chunk_id for chunk in chunks]
        for chunk_id in chunk_ids:
            self._chunks_by_id.pop(chunk_id, None)
        self._index.remove(chunk_ids)
        self._documents.pop(document_id, None)
