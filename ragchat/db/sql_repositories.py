"""SQL implementations of repository interfaces."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ragchat.db.models import ChunkEmbedding
from ragchat.db.models import Document as DocumentDB
from ragchat.db.models import DocumentChunk as DocumentChunkDB
from ragchat.docs.ingest import ChunkingConfig, prepare_document
from ragchat.llm.embeddings import EmbeddingProvider
from ragchat.models.docs import Chunk, Document, ScoredChunk
from ragchat.retrieval.similarity import check_dimension, rank_top_k

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_document(row: DocumentDB) -> Document:
    return Document(
        document_id=row.document_id,
        filename=row.filename,
        media_type=row.media_type,
        uploaded_at=_as_utc(row.uploaded_at),
        size_bytes=row.size_bytes,
        content_hash=row.content_hash,
        chunk_count=row.chunk_count,
    )


def _to_chunk(row: DocumentChunkDB) -> Chunk:
    return Chunk(
        chunk_id=row.chunk_id,
        document_id=row.document_id,
        order=row.order,
        text=row.text,
        token_count=row.token_count,
        start=row.start_offset,
        end=row.end_offset,
    )


class SqlVectorIndex:
    """SQL implementation of VectorIndex (linear scan over chunk_embedding)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], dimensions: int) -> None:
        self._session_factory = session_factory
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def find_top_k(self, query_vector: list[float], k: int) -> list[ScoredChunk]:
        """Score every stored embedding against the query."""
        check_dimension(query_vector, self._dimensions)
        if k <= 0:
            return []

        async with self._session_factory() as session:
            result = await session.execute(
                select(ChunkEmbedding.chunk_id, ChunkEmbedding.vector)
            )
            candidates = [(row.chunk_id, row.vector) for row in result]

        return rank_top_k(query_vector, candidates, k)


class SqlDocumentStore:
    """SQL implementation of DocumentStore."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embedder: EmbeddingProvider,
        chunking: ChunkingConfig,
    ) -> None:
        self._session_factory = session_factory
        self._embedder = embedder
        self._chunking = chunking
        self._index = SqlVectorIndex(session_factory, embedder.dimensions)

    @property
    def index(self) -> SqlVectorIndex:
        return self._index

    async def upload(self, data: bytes, filename: str, media_type: str) -> Document:
        """Ingest a document and persist it with chunks and embeddings in one transaction."""
        prepared = await prepare_document(
            data=data,
            filename=filename,
            media_type=media_type,
            embedder=self._embedder,
            chunking=self._chunking,
        )
        document = prepared.document

        async with self._session_factory() as session, session.begin():
            session.add(
                DocumentDB(
                    document_id=document.document_id,
                    filename=document.filename,
                    media_type=document.media_type,
                    uploaded_at=document.uploaded_at,
                    size_bytes=document.size_bytes,
                    content_hash=document.content_hash,
                    chunk_count=document.chunk_count,
                )
            )
            # Flush the parent first; chunk rows reference it
            await session.flush()

            for chunk in prepared.chunks:
                session.add(
                    DocumentChunkDB(
                        chunk_id=chunk.chunk_id,
                        document_id=chunk.document_id,
                        order=chunk.order,
                        text=chunk.text,
                        token_count=chunk.token_count,
                        start_offset=chunk.start,
                        end_offset=chunk.end,
                    )
                )
            await session.flush()

            for chunk, vector in zip(prepared.chunks, prepared.vectors):
                session.add(
                    ChunkEmbedding(
                        chunk_id=chunk.chunk_id,
                        dimensions=len(vector),
                        vector=vector,
                    )
                )

        logger.info(
            f"Stored document {document.document_id} ({document.filename!r}, "
            f"{document.chunk_count} chunks)"
        )
        return document

    async def get(self, document_id: uuid.UUID) -> Document | None:
        """Get document by ID."""
        async with self._session_factory() as session:
            row = await session.get(DocumentDB, document_id)
            return _to_document(row) if row is not None else None

    async def list_all(self) -> list[Document]:
        """List documents, newest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(DocumentDB).order_by(DocumentDB.uploaded_at.desc())
            )
            return [_to_document(row) for row in result.scalars().all()]

    async def find_by_hash(self, content_hash: str) -> list[Document]:
        """List documents with the given content hash, newest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(DocumentDB)
                .where(DocumentDB.content_hash == content_hash)
                .order_by(DocumentDB.uploaded_at.desc())
            )
            return [_to_document(row) for row in result.scalars().all()]

    async def list_chunks(self, document_id: uuid.UUID) -> list[Chunk]:
        """List a document's chunks in order."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(DocumentChunkDB)
                .where(DocumentChunkDB.document_id == document_id)
                .order_by(DocumentChunkDB.order)
            )
            return [_to_chunk(row) for row in result.scalars().all()]

    async def get_chunks(self, chunk_ids: list[uuid.UUID]) -> list[Chunk]:
        """Get chunks by id, preserving the requested order."""
        if not chunk_ids:
            return []

        async with self._session_factory() as session:
            result = await session.execute(
                select(DocumentChunkDB).where(DocumentChunkDB.chunk_id.in_(chunk_ids))
            )
            by_id = {row.chunk_id: _to_chunk(row) for row in result.scalars().all()}

        return [by_id[cid] for cid in chunk_ids if cid in by_id]

    async def delete(self, document_id: uuid.UUID) -> None:
        """Delete a document, its chunks and their embeddings."""
        chunk_ids = select(DocumentChunkDB.chunk_id).where(
            DocumentChunkDB.document_id == document_id
        )

        async with self._session_factory() as session, session.begin():
            await session.execute(
                delete(ChunkEmbedding)
                .where(ChunkEmbedding.chunk_id.in_(chunk_ids))
                .execution_options(synchronize_session=False)
            )
            await session.execute(
                delete(DocumentChunkDB).where(DocumentChunkDB.document_id == document_id)
            )
            result = await session.execute(
                delete(DocumentDB).where(DocumentDB.document_id == document_id)
            )

        if result.rowcount:
            logger.info(f"Deleted document {document_id}")
