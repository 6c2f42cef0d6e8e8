"""Integration tests for document API routes."""

import uuid

from fastapi.testclient import TestClient

from ragchat.services import Services

THREE_CHUNK_DOC = (
    "alpha bravo charlie delta echo foxtrot golf hotel "
    "penguins live in antarctica and eat krill daily "
    "india juliet kilo lima mike november oscar papa"
)


def _upload(client: TestClient, filename: str = "animals.txt", body: bytes | None = None):
    content = THREE_CHUNK_DOC.encode() if body is None else body
    return client.post("/docs", files={"file": (filename, content, "text/plain")})


def test_upload_returns_document(api_client: TestClient) -> None:
    """Upload chunks and embeds in one step."""
    response = _upload(api_client)

    assert response.status_code == 201
    data = response.json()
    assert data["filename"] == "animals.txt"
    assert data["media_type"] == "text/plain"
    assert data["chunk_count"] == 3
    assert data["size_bytes"] == len(THREE_CHUNK_DOC.encode())
    assert len(data["content_hash"]) == 64


def test_duplicate_upload_creates_second_document(api_client: TestClient) -> None:
    """Same bytes twice: two documents sharing a content hash."""
    first = _upload(api_client).json()
    second = _upload(api_client).json()

    assert first["document_id"] != second["document_id"]
    assert first["content_hash"] == second["content_hash"]
    assert len(api_client.get("/docs").json()["docs"]) == 2


def test_list_chunks_in_order(api_client: TestClient) -> None:
    document = _upload(api_client).json()

    response = api_client.get(f"/docs/{document['document_id']}/chunks")

    assert response.status_code == 200
    chunks = response.json()["chunks"]
    assert [c["order"] for c in chunks] == [0, 1, 2]
    assert "".join(c["text"] for c in chunks) == THREE_CHUNK_DOC


def test_chunks_of_unknown_document_404(api_client: TestClient) -> None:
    response = api_client.get(f"/docs/{uuid.uuid4()}/chunks")

    assert response.status_code == 404


def test_search_ranks_answering_chunk_first(api_client: TestClient) -> None:
    _upload(api_client)

    response = api_client.get("/docs/search", params={"query": "what do penguins eat", "k": 2})

    assert response.status_code == 200
    matches = response.json()["matches"]
    assert len(matches) == 2
    assert "penguins" in matches[0]["chunk"]["text"]
    assert matches[0]["score"] >= matches[1]["score"]


def test_context_endpoint(api_client: TestClient) -> None:
    """/docs/context shows the text the chat decorator would inject."""
    assert api_client.get("/docs/context", params={"query": "penguins"}).json()["context"] == ""

    _upload(api_client)
    response = api_client.get("/docs/context", params={"query": "what do penguins eat"})

    assert response.status_code == 200
    assert response.json()["context"].startswith("penguins live in antarctica")


def test_delete_removes_document(api_client: TestClient) -> None:
    document = _upload(api_client).json()

    response = api_client.delete(f"/docs/{document['document_id']}")

    assert response.status_code == 204
    assert api_client.get("/docs").json()["docs"] == []
    assert api_client.get("/docs/context", params={"query": "penguins"}).json()["context"] == ""


def test_upload_rejects_extension(api_client: TestClient) -> None:
    response = _upload(api_client, filename="script.exe")

    assert response.status_code == 415


def test_upload_rejects_empty_file(api_client: TestClient) -> None:
    response = _upload(api_client, body=b"")

    assert response.status_code == 400


def test_upload_rejects_oversized_file(api_client: TestClient, api_services: Services) -> None:
    api_services.settings.upload_max_bytes = 10

    response = _upload(api_client)

    assert response.status_code == 413


def test_upload_rejects_unreadable_pdf(api_client: TestClient) -> None:
    """A .pdf that is not a PDF is a 422 and nothing is stored."""
    response = api_client.post(
        "/docs", files={"file": ("bad.pdf", b"not a pdf at all", "application/pdf")}
    )

    assert response.status_code == 422
    assert "PDF" in response.json()["detail"]
    assert api_client.get("/docs").json()["docs"] == []


def test_upload_rejects_unreadable_docx(api_client: TestClient) -> None:
    response = _upload(api_client, filename="bad.docx", body=b"not a zip archive")

    assert response.status_code == 422
