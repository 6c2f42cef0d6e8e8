"""Chat client decorator that prepends knowledge base context as a system message.

Each call runs three steps: look for an already injected context message
(identified by the source's marker), build context if there is none, then
forward to the wrapped client with the new system message first.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Protocol, TypeVar

from ragchat.config import Settings
from ragchat.knowledge.manager import KnowledgeBaseManager
from ragchat.llm.chat import ChatClient
from ragchat.models.chat import ChatMessage, ChatOptions, ChatResponse, ChatResponseUpdate, ChatRole
from ragchat.retrieval.rag_service import RagService
from ragchat.utils.logging import ContextEventLogger
from ragchat.utils.metrics import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATIC_CONTEXT_MARKER = "KNOWLEDGE BASE:"
RETRIEVED_CONTEXT_MARKER = "RETRIEVED CONTEXT:"


class ContextSource(Protocol):
    """Produces the system message text injected ahead of a conversation."""

    mode: str
    marker: str

    async def build_context(self, messages: Sequence[ChatMessage]) -> str | None:
        """Return system message text containing marker, or None to skip injection."""
        ...


class StaticKnowledgeBaseContext:
    """Describes the configured vector store to the model on every turn."""

    mode = "static"
    marker = STATIC_CONTEXT_MARKER

    def __init__(self, manager: KnowledgeBaseManager, settings: Settings) -> None:
        self._manager = manager
        self._description = settings.knowledge_base_description

    async def build_context(self, messages: Sequence[ChatMessage]) -> str | None:
        handle = await self._manager.current_handle()
        if handle is None:
            return None

        info = await self._manager.get_info()
        if info is not None and info.completed_files > 0:
            context_info = (
                f"You have access to {self._description} through vector store ID: "
                f"{handle.vector_store_id}. The knowledge base contains "
                f"{info.completed_files} processed document(s)."
            )
        else:
            context_info = (
                f"You have access to a knowledge base (vector store ID: "
                f"{handle.vector_store_id}), but it may still be processing."
            )

        return (
            f"You are a helpful AI assistant with access to {self._description}.\n\n"
            "IMPORTANT INSTRUCTIONS:\n"
            "1. When users ask about topics the documentation covers, use its knowledge\n"
            "2. Provide accurate, step-by-step instructions based on the documentation\n"
            "3. Reference specific sections or page numbers when possible\n"
            "4. If you're not sure about something, say so clearly\n"
            "5. Answer in the language the user writes in\n\n"
            f"{self.marker}\n{context_info}"
        )


class RetrievedDocumentContext:
    """Retrieves the chunks most relevant to the latest user message."""

    mode = "rag"
    marker = RETRIEVED_CONTEXT_MARKER

    def __init__(self, rag_service: RagService, k: int | None = None) -> None:
        self._rag_service = rag_service
        self._k = k

    async def build_context(self, messages: Sequence[ChatMessage]) -> str | None:
        query = next((m.text for m in reversed(messages) if m.role == ChatRole.USER), "")
        if not query.strip():
            return None

        context = await self._rag_service.get_relevant_context(query, k=self._k)
        if not context:
            return None

        return (
            "Use the excerpts below from the uploaded documents when they are relevant "
            "to the question. If they do not contain the answer, say so clearly.\n\n"
            f"{self.marker}\n{context}"
        )


class ContextInjectingChatClient:
    """ChatClient decorator adding knowledge base context to conversations."""

    def __init__(
        self,
        inner: ChatClient,
        context_source: ContextSource,
        event_logger: ContextEventLogger | None = None,
    ) -> None:
        self._inner = inner
        self._source = context_source
        self._events = event_logger or ContextEventLogger()

    @property
    def inner(self) -> ChatClient:
        return self._inner

    def _record(
        self,
        outcome: str,
        message_count: int,
        context_chars: int = 0,
        error_reason: str | None = None,
    ) -> None:
        metrics.record_injection(self._source.mode, outcome)
        self._events.log_decision(
            mode=self._source.mode,
            outcome=outcome,
            message_count=message_count,
            context_chars=context_chars,
            error_reason=error_reason,
        )

    async def _with_context(self, messages: Sequence[ChatMessage]) -> list[ChatMessage]:
        """Return the message list to forward. The caller's sequence is never modified."""
        forwarded = list(messages)

        if any(
            m.role == ChatRole.SYSTEM and self._source.marker in m.text for m in forwarded
        ):
            self._record("already_present", len(forwarded))
            return forwarded

        try:
            context = await self._source.build_context(forwarded)
        except Exception as e:
            logger.error(f"Context source {self._source.mode} failed: {e}")
            self._record("error", len(forwarded), error_reason=str(e))
            return forwarded

        if context is None:
            self._record("skipped", len(forwarded))
            return forwarded

        self._record("injected", len(forwarded), context_chars=len(context))
        return [ChatMessage(role=ChatRole.SYSTEM, text=context), *forwarded]

    async def get_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        return await self._inner.get_response(await self._with_context(messages), options)

    async def get_streaming_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatResponseUpdate]:
        forwarded = await self._with_context(messages)
        async for update in self._inner.get_streaming_response(forwarded, options):
            yield update

    def get_service(self, service_type: type[T]) -> T | None:
        if isinstance(self, service_type):
            return self
        return self._inner.get_service(service_type)

    async def aclose(self) -> None:
        await self._inner.aclose()
