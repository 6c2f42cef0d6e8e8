"""Shared pytest fixtures for all test suites."""

import json
import re
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ragchat.config import Settings
from ragchat.db.engine import create_session_factory, init_models
from ragchat.db.inmemory import InMemoryDocumentStore
from ragchat.docs.chunker import WhitespaceTokenizer
from ragchat.docs.ingest import ChunkingConfig
from ragchat.knowledge.vector_store_api import OpenAIVectorStoreClient
from ragchat.llm.embeddings import HashingEmbeddingProvider
from ragchat.main import create_app
from ragchat.services import Services, build_services

TEST_DIMENSIONS = 256


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Offline settings: stub provider, whitespace tokens, small chunks."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        llm_provider="stub",
        openai_api_key=None,
        chunk_tokenizer="whitespace",
        chunk_max_tokens=8,
        chunk_overlap_tokens=0,
        embedding_dimensions=TEST_DIMENSIONS,
        rag_top_k=1,
        context_mode="rag",
        knowledge_base_config_path=str(tmp_path / "vectorstore.config.json"),
        knowledge_base_name="Test Manual",
        knowledge_base_description="the test manual",
    )


@pytest.fixture
def embedder() -> HashingEmbeddingProvider:
    """Deterministic offline embedder."""
    return HashingEmbeddingProvider(dimensions=TEST_DIMENSIONS)


@pytest.fixture
def chunking() -> ChunkingConfig:
    """Eight whitespace tokens per chunk, no overlap."""
    return ChunkingConfig(max_tokens=8, overlap_tokens=0, tokenizer=WhitespaceTokenizer())


@pytest.fixture
def memory_store(
    embedder: HashingEmbeddingProvider, chunking: ChunkingConfig
) -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore(embedder, chunking)


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return create_session_factory(sqlite_engine)


class FakeVectorStoreBackend:
    """In-process stand-in for the vector store / files HTTP API.

    Use as an httpx.MockTransport handler. Requests are recorded; any
    (method, path regex) in fail_on answers with HTTP 500.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.stores: dict[str, dict[str, Any]] = {}
        self.store_files: dict[str, list[dict[str, Any]]] = {}
        self.uploaded: dict[str, dict[str, Any]] = {}
        self.fail_on: set[tuple[str, str]] = set()
        self.file_status = "completed"
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def _store_json(self, store_id: str) -> dict[str, Any]:
        files = self.store_files[store_id]
        counts = {"in_progress": 0, "completed": 0, "failed": 0, "cancelled": 0}
        for f in files:
            counts[f["status"]] += 1
        return {
            **self.stores[store_id],
            "file_counts": {**counts, "total": len(files)},
            "usage_bytes": 1024 * len(files),
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method = request.method
        path = request.url.path.removeprefix("/v1")

        for fail_method, pattern in self.fail_on:
            if method == fail_method and re.fullmatch(pattern, path):
                return httpx.Response(500, json={"error": {"message": "boom"}})

        if method == "POST" and path == "/vector_stores":
            body = json.loads(request.content)
            store_id = self._next_id("vs")
            self.stores[store_id] = {
                "id": store_id,
                "object": "vector_store",
                "created_at": 1_700_000_000,
                "name": body["name"],
                "status": "completed",
                "expires_after": body["expires_after"],
                "last_active_at": 1_700_000_100,
            }
            self.store_files[store_id] = []
            return httpx.Response(200, json=self._store_json(store_id))

        if method == "POST" and path == "/files":
            file_id = self._next_id("file")
            self.uploaded[file_id] = {"content": request.content}
            return httpx.Response(
                200,
                json={
                    "id": file_id,
                    "object": "file",
                    "bytes": len(request.content),
                    "created_at": 1_700_000_000,
                    "filename": "upload",
                    "purpose": "assistants",
                },
            )

        match = re.fullmatch(r"/vector_stores/([^/]+)(/files)?(?:/([^/]+))?", path)
        if match is None or match.group(1) not in self.stores:
            return httpx.Response(404, json={"error": {"message": "not found"}})
        store_id, files_part, file_id = match.groups()

        if files_part is None:
            if method == "GET":
                return httpx.Response(200, json=self._store_json(store_id))
            if method == "DELETE":
                del self.stores[store_id]
                del self.store_files[store_id]
                return httpx.Response(200, json={"id": store_id, "deleted": True})

        if files_part and file_id is None:
            if method == "POST":
                attached = {
                    "id": json.loads(request.content)["file_id"],
                    "object": "vector_store.file",
                    "usage_bytes": 1024,
                    "created_at": 1_700_000_050,
                    "vector_store_id": store_id,
                    "status": self.file_status,
                }
                self.store_files[store_id].append(attached)
                return httpx.Response(200, json=attached)
            if method == "GET":
                return httpx.Response(
                    200, json={"object": "list", "data": self.store_files[store_id]}
                )

        if files_part and file_id is not None and method == "DELETE":
            self.store_files[store_id] = [
                f for f in self.store_files[store_id] if f["id"] != file_id
            ]
            return httpx.Response(200, json={"id": file_id, "deleted": True})

        return httpx.Response(405)


@pytest.fixture
def vector_store_backend() -> FakeVectorStoreBackend:
    """Fresh fake vector store API."""
    return FakeVectorStoreBackend()


@pytest_asyncio.fixture
async def vector_store_client(
    vector_store_backend: FakeVectorStoreBackend,
) -> AsyncGenerator[OpenAIVectorStoreClient, None]:
    """Vector store client wired to the fake backend."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(vector_store_backend))
    yield OpenAIVectorStoreClient(
        "sk-test", base_url="https://api.openai.com/v1", client=http_client
    )
    await http_client.aclose()


@pytest.fixture
def api_services(
    settings: Settings,
    memory_store: InMemoryDocumentStore,
    embedder: HashingEmbeddingProvider,
    vector_store_backend: FakeVectorStoreBackend,
) -> Services:
    """Services over the in-memory store, the fake vector store and the stub transport."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(vector_store_backend))
    return build_services(
        settings,
        store=memory_store,
        embedder=embedder,
        vector_store_api=OpenAIVectorStoreClient("sk-test", client=http_client),
    )


@pytest.fixture
def api_client(api_services: Services) -> Generator[TestClient, None, None]:
    """Test client running the application lifespan."""
    with TestClient(create_app(services=api_services)) as client:
        yield client
