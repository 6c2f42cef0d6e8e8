"""Service container: builds and owns the process-wide components."""

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ragchat.config import Settings
from ragchat.db.engine import create_async_engine_from_settings, create_session_factory
from ragchat.db.repositories import DocumentStore
from ragchat.db.sql_repositories import SqlDocumentStore
from ragchat.docs.chunker import get_tokenizer
from ragchat.docs.ingest import ChunkingConfig
from ragchat.knowledge.manager import KnowledgeBaseManager
from ragchat.knowledge.vector_store_api import OpenAIVectorStoreClient, VectorStoreApi
from ragchat.llm.chat import ChatClient
from ragchat.llm.client import get_chat_transport
from ragchat.llm.context_client import (
    ContextInjectingChatClient,
    ContextSource,
    RetrievedDocumentContext,
    StaticKnowledgeBaseContext,
)
from ragchat.llm.embeddings import EmbeddingProvider, get_embedding_provider
from ragchat.retrieval.rag_service import RagService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Components shared by all requests."""

    settings: Settings
    engine: AsyncEngine | None
    session_factory: async_sessionmaker[AsyncSession] | None
    embedder: EmbeddingProvider
    store: DocumentStore
    rag_service: RagService
    knowledge_base: KnowledgeBaseManager | None
    chat_client: ChatClient

    async def aclose(self) -> None:
        """Close outbound clients and dispose the engine."""
        await self.chat_client.aclose()
        if self.knowledge_base is not None and isinstance(
            self.knowledge_base.api, OpenAIVectorStoreClient
        ):
            await self.knowledge_base.api.aclose()
        if self.engine is not None:
            await self.engine.dispose()


def build_chat_client(
    settings: Settings,
    *,
    rag_service: RagService,
    knowledge_base: KnowledgeBaseManager | None,
    transport: ChatClient | None = None,
) -> ChatClient:
    """Compose the chat transport with the configured context decorator.

    Args:
        settings: Application settings (context_mode selects the strategy)
        rag_service: Retrieval service for rag mode
        knowledge_base: Manager for static mode (None when no vector store API)
        transport: Chat transport to wrap (defaults to the configured provider)
    """
    inner = transport if transport is not None else get_chat_transport(settings)

    source: ContextSource | None = None
    if settings.context_mode == "rag":
        source = RetrievedDocumentContext(rag_service, k=settings.rag_top_k)
    elif settings.context_mode == "static":
        if knowledge_base is None:
            logger.warning("context_mode=static but no vector store API is configured")
        else:
            source = StaticKnowledgeBaseContext(knowledge_base, settings)

    if source is None:
        logger.info("Chat context injection disabled")
        return inner

    logger.info(f"Chat context injection mode: {source.mode}")
    return ContextInjectingChatClient(inner, source)


def build_services(
    settings: Settings,
    *,
    store: DocumentStore | None = None,
    embedder: EmbeddingProvider | None = None,
    vector_store_api: VectorStoreApi | None = None,
    vector_store_http_client: httpx.AsyncClient | None = None,
    chat_transport: ChatClient | None = None,
) -> Services:
    """Wire up every component from settings.

    Any argument given replaces the component that would be built from
    settings (tests pass in-memory stores and mocked clients).
    """
    embedder = embedder or get_embedding_provider(settings)

    engine = None
    session_factory = None
    if store is None:
        engine = create_async_engine_from_settings(settings)
        session_factory = create_session_factory(engine)
        chunking = ChunkingConfig(
            max_tokens=settings.chunk_max_tokens,
            overlap_tokens=settings.chunk_overlap_tokens,
            tokenizer=get_tokenizer(settings.chunk_tokenizer),
        )
        store = SqlDocumentStore(session_factory, embedder, chunking)

    rag_service = RagService(store, embedder, default_k=settings.rag_top_k)

    if vector_store_api is None and settings.openai_api_key is not None:
        vector_store_api = OpenAIVectorStoreClient.from_settings(
            settings, client=vector_store_http_client
        )
    knowledge_base = (
        KnowledgeBaseManager(vector_store_api, settings) if vector_store_api is not None else None
    )

    chat_client = build_chat_client(
        settings,
        rag_service=rag_service,
        knowledge_base=knowledge_base,
        transport=chat_transport,
    )

    return Services(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        embedder=embedder,
        store=store,
        rag_service=rag_service,
        knowledge_base=knowledge_base,
        chat_client=chat_client,
    )
