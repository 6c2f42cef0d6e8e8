"""Document domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class Document(BaseModel):
    """Uploaded document metadata."""

    document_id: UUID
    filename: str
    media_type: str
    uploaded_at: datetime
    size_bytes: int
    content_hash: str  # hex sha256 of the raw bytes
    chunk_count: int = 0


class Chunk(BaseModel):
    """Ordered span of a document's extracted text."""

    chunk_id: UUID
    document_id: UUID
    order: int  # 0-based, contiguous per document
    text: str
    token_count: int
    start: int
    end: int


class ScoredChunk(BaseModel):
    """Chunk id with its similarity to a query vector."""

    chunk_id: UUID
    score: float


class ChunkMatch(BaseModel):
    """Chunk with relevance score."""

    chunk: Chunk
    score: float
