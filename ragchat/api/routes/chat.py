"""Chat endpoints - POST /chat and SSE streaming POST /chat/stream."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ragchat.api.deps import get_services
from ragchat.errors import ExternalProviderError
from ragchat.models.chat import ChatMessage, ChatOptions, ChatResponse
from ragchat.services import Services

router = APIRouter(prefix="/chat", tags=["chat"])
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    """Request body for POST /chat and POST /chat/stream."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    options: ChatOptions | None = None


class StreamError(BaseModel):
    """Payload of the SSE error event."""

    detail: str


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    services: Annotated[Services, Depends(get_services)],
) -> ChatResponse:
    """Complete a conversation (context is injected by the configured decorator)."""
    try:
        return await services.chat_client.get_response(request.messages, request.options)
    except ExternalProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    services: Annotated[Services, Depends(get_services)],
) -> StreamingResponse:
    """Stream response fragments as SSE data events, ending with a done event."""

    async def event_generator() -> AsyncGenerator[str, None]:
        """Forward each update as soon as the provider produces it."""
        try:
            async for update in services.chat_client.get_streaming_response(
                request.messages, request.options
            ):
                yield f"data: {update.model_dump_json()}\n\n"
        except ExternalProviderError as e:
            logger.error(f"Chat stream failed: {e}")
            yield "event: error\n"
            yield f"data: {StreamError(detail=str(e)).model_dump_json()}\n\n"
            return

        yield "event: done\n"
        yield 'data: {"status": "done"}\n\n'

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
