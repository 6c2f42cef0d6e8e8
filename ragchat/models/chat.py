"""Conversation models passed between callers and chat transports."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(str, Enum):
    """Message author role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """Single role-tagged message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    text: str
    attachments: tuple[str, ...] = ()


class ChatOptions(BaseModel):
    """Per-request generation options."""

    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)


class ChatUsage(BaseModel):
    """Token usage reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """Completed (non-streaming) chat response."""

    message: ChatMessage
    model: str | None = None
    finish_reason: str | None = None
    usage: ChatUsage | None = None


class ChatResponseUpdate(BaseModel):
    """Incremental fragment of a streaming chat response."""

    text: str = ""
    role: ChatRole = ChatRole.ASSISTANT
    model: str | None = None
    finish_reason: str | None = None
