"""Chat transport protocol.

Any provider (or decorator around one) implements the same four calls, so
wrappers can be stacked or swapped without knowing the concrete provider.
"""

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, TypeVar

from ragchat.models.chat import ChatMessage, ChatOptions, ChatResponse, ChatResponseUpdate

T = TypeVar("T")


class ChatClient(Protocol):
    """Protocol for chat completion clients."""

    async def get_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Submit a conversation and wait for the complete response."""
        ...

    def get_streaming_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatResponseUpdate]:
        """Submit a conversation and iterate response fragments as they arrive."""
        ...

    def get_service(self, service_type: type[T]) -> T | None:
        """Return self, or an object this client wraps, if it is a service_type."""
        ...

    async def aclose(self) -> None:
        """Release underlying connections."""
        ...
