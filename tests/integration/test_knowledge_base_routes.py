"""Integration tests for knowledge base routes against the fake vector store API."""

from typing import Any

from fastapi.testclient import TestClient

from ragchat.config import Settings
from ragchat.db.inmemory import InMemoryDocumentStore
from ragchat.llm.embeddings import HashingEmbeddingProvider
from ragchat.main import create_app
from ragchat.services import build_services


def _file(name: str = "manual.txt", body: bytes = b"Log in with your badge number."):
    return {"file": (name, body, "text/plain")}


def test_knowledge_base_lifecycle(api_client: TestClient, vector_store_backend: Any) -> None:
    """Initialize, extend, inspect and delete."""
    assert api_client.get("/knowledge-base").status_code == 404
    assert api_client.post("/knowledge-base/files", files=_file()).status_code == 409
    assert api_client.get("/knowledge-base/assistant").status_code == 404
    assert api_client.get("/knowledge-base/status").json()["is_initialized"] is False

    created = api_client.post("/knowledge-base", files=_file(), data={"name": "Badge Manual"})
    assert created.status_code == 201
    handle = created.json()
    assert handle["vectorStoreId"] == "vs_1"
    assert handle["name"] == "Badge Manual"

    added = api_client.post("/knowledge-base/files", files=_file("faq.txt", b"More answers."))
    assert added.status_code == 201
    assert added.json()["file_id"] == "file_3"

    info = api_client.get("/knowledge-base").json()
    assert info["vector_store_id"] == "vs_1"
    assert info["file_count"] == 2

    status = api_client.get("/knowledge-base/status").json()
    assert status["is_ready"] is True
    assert status["message"] == "Knowledge base ready with 2 file(s)"

    assistant = api_client.get("/knowledge-base/assistant").json()
    assert assistant["name"] == "Test Manual Assistant"
    assert assistant["vector_store_id"] == "vs_1"

    deleted = api_client.delete("/knowledge-base")
    assert deleted.json() == {"deleted": True}
    assert vector_store_backend.stores == {}
    assert api_client.delete("/knowledge-base").json() == {"deleted": False}


def test_initialize_rejects_bad_upload(api_client: TestClient, vector_store_backend: Any) -> None:
    """Validation runs before any provider call."""
    response = api_client.post("/knowledge-base", files=_file("tool.exe"))

    assert response.status_code == 415
    assert vector_store_backend.requests == []


def test_provider_failure_is_bad_gateway(
    api_client: TestClient, vector_store_backend: Any
) -> None:
    vector_store_backend.fail_on.add(("POST", r"/files"))

    response = api_client.post("/knowledge-base", files=_file())

    assert response.status_code == 502
    assert api_client.get("/knowledge-base/status").json()["is_initialized"] is False


def test_unavailable_without_api_key(
    settings: Settings, memory_store: InMemoryDocumentStore, embedder: HashingEmbeddingProvider
) -> None:
    """No API key and no injected API: knowledge base routes answer 503."""
    services = build_services(settings, store=memory_store, embedder=embedder)

    with TestClient(create_app(services=services)) as client:
        response = client.get("/knowledge-base/status")

    assert services.knowledge_base is None
    assert response.status_code == 503
