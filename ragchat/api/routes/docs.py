"""Document endpoints - upload, list, chunks, delete, search and context."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from pydantic import BaseModel

from ragchat.api.deps import get_services, read_upload
from ragchat.docs.uploads import guess_media_type
from ragchat.errors import (
    DimensionMismatchError,
    DocumentExtractionError,
    ExternalProviderError,
    UnsupportedMediaTypeError,
)
from ragchat.models.docs import Chunk, ChunkMatch, Document
from ragchat.services import Services

router = APIRouter(prefix="/docs", tags=["docs"])


class DocListResponse(BaseModel):
    """Response for GET /docs."""

    docs: list[Document]


class ChunkListResponse(BaseModel):
    """Response for GET /docs/{document_id}/chunks."""

    document_id: uuid.UUID
    chunks: list[Chunk]


class DocSearchResponse(BaseModel):
    """Response for GET /docs/search."""

    matches: list[ChunkMatch]
    query: str


class DocContextResponse(BaseModel):
    """Response for GET /docs/context."""

    query: str
    context: str


@router.post("", response_model=Document, status_code=status.HTTP_201_CREATED)
async def upload_doc(
    file: Annotated[UploadFile, File(description="Document (.pdf, .txt, .md, .docx)")],
    services: Annotated[Services, Depends(get_services)],
) -> Document:
    """Upload a document; it is chunked, embedded and stored in one step.

    Identical bytes uploaded twice produce two documents with the same
    content_hash. A file that cannot be parsed as its declared type is
    rejected with 422.
    """
    filename, data = await read_upload(file, services.settings)

    try:
        return await services.store.upload(data, filename, guess_media_type(filename))
    except UnsupportedMediaTypeError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e)) from e
    except DocumentExtractionError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e
    except ExternalProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e


@router.get("", response_model=DocListResponse)
async def list_docs(services: Annotated[Services, Depends(get_services)]) -> DocListResponse:
    """List documents, newest first."""
    return DocListResponse(docs=await services.store.list_all())


@router.get("/search", response_model=DocSearchResponse)
async def search_docs(
    services: Annotated[Services, Depends(get_services)],
    query: Annotated[str, Query(min_length=1, max_length=2000)],
    k: Annotated[int, Query(ge=1, le=50)] = 3,
) -> DocSearchResponse:
    """Rank chunks by cosine similarity to the query."""
    try:
        matches = await services.rag_service.search(query, k)
    except (ExternalProviderError, DimensionMismatchError) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return DocSearchResponse(matches=matches, query=query)


@router.get("/context", response_model=DocContextResponse)
async def get_context(
    services: Annotated[Services, Depends(get_services)],
    query: Annotated[str, Query(min_length=1, max_length=2000)],
    k: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> DocContextResponse:
    """Context text the chat decorator would inject for this query ("" if none)."""
    context = await services.rag_service.get_relevant_context(query, k=k)
    return DocContextResponse(query=query, context=context)


@router.get("/{document_id}/chunks", response_model=ChunkListResponse)
async def list_doc_chunks(
    document_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> ChunkListResponse:
    """List a document's chunks in order (404 if the document is unknown)."""
    if await services.store.get(document_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    chunks = await services.store.list_chunks(document_id)
    return ChunkListResponse(document_id=document_id, chunks=chunks)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_doc(
    document_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> Response:
    """Delete a document with its chunks and embeddings. Unknown ids are a no-op."""
    await services.store.delete(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
