"""Chat transports with OpenAI / Azure OpenAI integration.

Security: Reads API key from settings (environment) only, never hardcoded.
Provides a deterministic stub transport when the stub provider is selected.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any, TypeVar

from openai import AsyncAzureOpenAI, AsyncOpenAI

from ragchat.config import Settings
from ragchat.errors import ConfigurationError, ExternalProviderError
from ragchat.models.chat import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ChatResponseUpdate,
    ChatRole,
    ChatUsage,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_openai_client(settings: Settings) -> AsyncOpenAI:
    """Build the SDK client for the configured provider.

    Raises:
        ConfigurationError: If the API key is missing
    """
    if settings.openai_api_key is None or not settings.openai_api_key.get_secret_value():
        raise ConfigurationError("OPENAI_API_KEY is not configured")

    api_key = settings.openai_api_key.get_secret_value()

    if settings.llm_provider == "azure":
        if not settings.azure_openai_endpoint:
            raise ConfigurationError("AZURE_OPENAI_ENDPOINT is not configured")
        return AsyncAzureOpenAI(
            api_key=api_key,
            azure_endpoint=settings.azure_openai_endpoint,
            api_version=settings.azure_openai_api_version,
            timeout=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
        )

    return AsyncOpenAI(
        api_key=api_key,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout_seconds,
        max_retries=settings.max_retries,
    )


def to_openai_messages(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
    """Convert messages to the chat completions wire format."""
    converted = []
    for message in messages:
        content = message.text
        if message.attachments:
            listed = "\n".join(f"- {ref}" for ref in message.attachments)
            content = f"{content}\n\nAttached files:\n{listed}"
        converted.append({"role": message.role.value, "content": content})
    return converted


class OpenAIChatClient:
    """OpenAI-backed chat transport."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini") -> None:
        """Initialize chat transport.

        Args:
            client: Configured AsyncOpenAI / AsyncAzureOpenAI client
            model: Default model (or Azure deployment) name
        """
        self.client = client
        self.model = model

    def _request_kwargs(
        self, messages: Sequence[ChatMessage], options: ChatOptions | None
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": (options.model if options and options.model else self.model),
            "messages": to_openai_messages(messages),
        }
        if options and options.temperature is not None:
            kwargs["temperature"] = options.temperature
        if options and options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens
        return kwargs

    async def get_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Call chat completions and return the first choice."""
        try:
            response = await self.client.chat.completions.create(
                **self._request_kwargs(messages, options)
            )
        except Exception as e:
            logger.error(f"OpenAI chat completion failed: {e}")
            raise ExternalProviderError(f"Chat completion failed: {e}") from e

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = ChatUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return ChatResponse(
            message=ChatMessage(role=ChatRole.ASSISTANT, text=choice.message.content or ""),
            model=response.model,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    async def get_streaming_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatResponseUpdate]:
        """Stream chat completion deltas as they arrive."""
        try:
            stream = await self.client.chat.completions.create(
                **self._request_kwargs(messages, options), stream=True
            )
        except Exception as e:
            logger.error(f"OpenAI streaming chat completion failed: {e}")
            raise ExternalProviderError(f"Chat completion failed: {e}") from e

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                yield ChatResponseUpdate(
                    text=choice.delta.content or "",
                    model=chunk.model,
                    finish_reason=choice.finish_reason,
                )
        finally:
            await stream.close()

    def get_service(self, service_type: type[T]) -> T | None:
        if isinstance(self, service_type):
            return self
        if isinstance(self.client, service_type):
            return self.client
        return None

    async def aclose(self) -> None:
        await self.client.close()


class EchoStubChatClient:
    """Deterministic stub transport for testing (no API key required)."""

    model = "stub"

    def _reply(self, messages: Sequence[ChatMessage]) -> str:
        last_user = next(
            (m.text for m in reversed(messages) if m.role == ChatRole.USER), ""
        )
        system_count = sum(1 for m in messages if m.role == ChatRole.SYSTEM)
        return f"Stub reply to: {last_user} ({system_count} system message(s))"

    async def get_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        return ChatResponse(
            message=ChatMessage(role=ChatRole.ASSISTANT, text=self._reply(messages)),
            model=self.model,
            finish_reason="stop",
        )

    async def get_streaming_response(
        self,
        messages: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatResponseUpdate]:
        words = self._reply(messages).split(" ")
        for i, word in enumerate(words):
            last = i == len(words) - 1
            yield ChatResponseUpdate(
                text=word if last else f"{word} ",
                model=self.model,
                finish_reason="stop" if last else None,
            )

    def get_service(self, service_type: type[T]) -> T | None:
        return self if isinstance(self, service_type) else None

    async def aclose(self) -> None:
        return None


def get_chat_transport(settings: Settings) -> OpenAIChatClient | EchoStubChatClient:
    """Factory function to get the chat transport based on config.

    Returns:
        OpenAIChatClient for openai/azure, EchoStubChatClient for stub
    """
    if settings.llm_provider == "stub":
        logger.warning("LLM provider is stub, using deterministic echo transport")
        return EchoStubChatClient()

    logger.info(f"Using {settings.llm_provider} chat transport ({settings.chat_model})")
    return OpenAIChatClient(create_openai_client(settings), model=settings.chat_model)
