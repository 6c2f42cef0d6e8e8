"""Models package - re-exports for convenience."""

from ragchat.models.chat import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ChatResponseUpdate,
    ChatRole,
    ChatUsage,
)
from ragchat.models.docs import Chunk, ChunkMatch, Document, ScoredChunk
from ragchat.models.knowledge import (
    AssistantConfiguration,
    KnowledgeBaseFileInfo,
    KnowledgeBaseHandle,
    KnowledgeBaseInfo,
    KnowledgeBaseStatus,
)

__all__ = [
    "AssistantConfiguration",
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "ChatResponseUpdate",
    "ChatRole",
    "ChatUsage",
    "Chunk",
    "ChunkMatch",
    "Document",
    "KnowledgeBaseFileInfo",
    "KnowledgeBaseHandle",
    "KnowledgeBaseInfo",
    "KnowledgeBaseStatus",
    "ScoredChunk",
]
