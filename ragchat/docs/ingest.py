"""Document ingestion - extract, chunk and embed before persisting."""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

from ragchat.docs.chunker import TextChunk, Tokenizer, chunk_text
from ragchat.docs.extract import extract_text
from ragchat.errors import EmbeddingUnavailableError
from ragchat.llm.embeddings import EmbeddingProvider
from ragchat.models.docs import Chunk, Document
from ragchat.retrieval.similarity import check_dimension

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkingConfig:
    """Chunk window parameters."""

    max_tokens: int
    overlap_tokens: int
    tokenizer: Tokenizer | None = None


@dataclass
class PreparedDocument:
    """Document with its chunks and one embedding per chunk, ready to persist."""

    document: Document
    chunks: list[Chunk]
    vectors: list[list[float]]


def content_hash(data: bytes) -> str:
    """Hex SHA-256 of raw document bytes."""
    return hashlib.sha256(data).hexdigest()


def _extract_and_chunk(data: bytes, media_type: str, chunking: ChunkingConfig) -> list[TextChunk]:
    # CPU-bound parsing and tokenizing; runs in a worker thread
    text = extract_text(data, media_type)
    return list(
        chunk_text(
            text,
            max_tokens=chunking.max_tokens,
            overlap_tokens=chunking.overlap_tokens,
            tokenizer=chunking.tokenizer,
        )
    )


async def prepare_document(
    *,
    data: bytes,
    filename: str,
    media_type: str,
    embedder: EmbeddingProvider,
    chunking: ChunkingConfig,
) -> PreparedDocument:
    """Run the ingestion pipeline without touching storage.

    Extraction and embedding failures propagate, so callers persist either the
    whole document or nothing.

    Args:
        data: Raw document bytes
        filename: Display name
        media_type: MIME type used to pick a text extractor
        embedder: Embedding provider for chunk texts
        chunking: Chunk window parameters

    Returns:
        PreparedDocument with contiguous chunk orders starting at 0

    Raises:
        UnsupportedMediaTypeError: No extractor for media_type
        DocumentExtractionError: The bytes could not be parsed
        EmbeddingUnavailableError: Chunk texts could not be embedded
    """
    document_id = uuid4()
    pieces = await asyncio.to_thread(_extract_and_chunk, data, media_type, chunking)

    chunks = [
        Chunk(
            chunk_id=uuid4(),
            document_id=document_id,
            order=piece.order,
            text=piece.text,
            token_count=piece.token_count,
            start=piece.start,
            end=piece.end,
        )
        for piece in pieces
    ]

    vectors = await embedder.embed_batch([chunk.text for chunk in chunks])
    if len(vectors) != len(chunks):
        raise EmbeddingUnavailableError(
            f"Got {len(vectors)} embeddings for {len(chunks)} chunks of {filename!r}"
        )
    for vector in vectors:
        check_dimension(vector, embedder.dimensions)

    document = Document(
        document_id=document_id,
        filename=filename,
        media_type=media_type,
        uploaded_at=datetime.now(timezone.utc),
        size_bytes=len(data),
        content_hash=content_hash(data),
        chunk_count=len(chunks),
    )

    logger.info(f"Prepared document {filename!r} ({document_id}): {len(chunks)} chunks")
    return PreparedDocument(document=document, chunks=chunks, vectors=vectors)
