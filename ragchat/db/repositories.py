"""Repository protocol interfaces for document and vector storage."""

from typing import Protocol
from uuid import UUID

from ragchat.models.docs import Chunk, Document, ScoredChunk


class VectorIndex(Protocol):
    """Similarity search over stored chunk embeddings."""

    @property
    def dimensions(self) -> int:
        """Dimension every stored and query vector must have."""
        ...

    async def find_top_k(self, query_vector: list[float], k: int) -> list[ScoredChunk]:
        """Find the k chunks most similar to the query vector.

        Args:
            query_vector: Query embedding
            k: Number of results; k <= 0 returns []

        Returns:
            ScoredChunk list by descending cosine score, ties by ascending chunk_id

        Raises:
            DimensionMismatchError: If query_vector has the wrong dimension
        """
        ...


class DocumentStore(Protocol):
    """Persistence for documents, their chunks and chunk embeddings."""

    @property
    def index(self) -> VectorIndex:
        """Vector index over this store's embeddings."""
        ...

    async def upload(self, data: bytes, filename: str, media_type: str) -> Document:
        """Extract, chunk, embed and persist a document atomically.

        Every call creates a new Document, even for identical bytes.

        Args:
            data: Raw document bytes
            filename: Display name
            media_type: MIME type

        Returns:
            Stored Document
        """
        ...

    async def get(self, document_id: UUID) -> Document | None:
        """Get document by ID."""
        ...

    async def list_all(self) -> list[Document]:
        """List all documents, newest first."""
        ...

    async def find_by_hash(self, content_hash: str) -> list[Document]:
        """List documents whose raw bytes hash to content_hash."""
        ...

    async def list_chunks(self, document_id: UUID) -> list[Chunk]:
        """List a document's chunks ordered by position ([] if unknown)."""
        ...

    async def get_chunks(self, chunk_ids: list[UUID]) -> list[Chunk]:
        """Get chunks in the order of chunk_ids, skipping unknown ids."""
        ...

    async def delete(self, document_id: UUID) -> None:
        """Delete a document with its chunks and embeddings. Unknown id is a no-op."""
        ...
