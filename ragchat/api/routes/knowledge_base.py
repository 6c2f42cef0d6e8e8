"""Knowledge base endpoints over the external vector store."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from ragchat.api.deps import get_knowledge_base, get_services, read_upload
from ragchat.errors import ExternalProviderError, KnowledgeBaseNotInitializedError
from ragchat.knowledge.manager import KnowledgeBaseManager
from ragchat.models.knowledge import (
    AssistantConfiguration,
    KnowledgeBaseHandle,
    KnowledgeBaseInfo,
    KnowledgeBaseStatus,
)
from ragchat.services import Services

router = APIRouter(prefix="/knowledge-base", tags=["knowledge-base"])
logger = logging.getLogger(__name__)


class AddFileResponse(BaseModel):
    """Response for POST /knowledge-base/files."""

    file_id: str


class DeleteResponse(BaseModel):
    """Response for DELETE /knowledge-base."""

    deleted: bool


def _provider_error(e: ExternalProviderError) -> HTTPException:
    logger.error(
        f"Knowledge base provider call failed (store={e.vector_store_id}, file={e.file_id}): {e}"
    )
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("", response_model=KnowledgeBaseHandle, status_code=status.HTTP_201_CREATED)
async def initialize_knowledge_base(
    file: Annotated[UploadFile, File(description="First document of the knowledge base")],
    services: Annotated[Services, Depends(get_services)],
    manager: Annotated[KnowledgeBaseManager, Depends(get_knowledge_base)],
    name: Annotated[str | None, Form()] = None,
) -> KnowledgeBaseHandle:
    """Create a vector store with one file. Replaces any existing knowledge base handle."""
    filename, data = await read_upload(file, services.settings)
    try:
        return await manager.initialize(data, filename, name=name)
    except ExternalProviderError as e:
        raise _provider_error(e) from e


@router.post("/files", response_model=AddFileResponse, status_code=status.HTTP_201_CREATED)
async def add_knowledge_base_file(
    file: Annotated[UploadFile, File()],
    services: Annotated[Services, Depends(get_services)],
    manager: Annotated[KnowledgeBaseManager, Depends(get_knowledge_base)],
) -> AddFileResponse:
    """Upload a file into the existing knowledge base (409 if not initialized)."""
    filename, data = await read_upload(file, services.settings)
    try:
        file_id = await manager.add_file(data, filename)
    except KnowledgeBaseNotInitializedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except ExternalProviderError as e:
        raise _provider_error(e) from e
    return AddFileResponse(file_id=file_id)


@router.get("", response_model=KnowledgeBaseInfo)
async def get_knowledge_base_info(
    manager: Annotated[KnowledgeBaseManager, Depends(get_knowledge_base)],
) -> KnowledgeBaseInfo:
    """Current store summary (404 if absent or unreachable)."""
    info = await manager.get_info()
    if info is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Knowledge base not available"
        )
    return info


@router.get("/status", response_model=KnowledgeBaseStatus)
async def get_knowledge_base_status(
    manager: Annotated[KnowledgeBaseManager, Depends(get_knowledge_base)],
) -> KnowledgeBaseStatus:
    """Readiness summary."""
    return await manager.get_status()


@router.get("/assistant", response_model=AssistantConfiguration)
async def get_assistant_configuration(
    manager: Annotated[KnowledgeBaseManager, Depends(get_knowledge_base)],
) -> AssistantConfiguration:
    """Assistant definition bound to the current store (404 if not initialized)."""
    config = await manager.assistant_configuration()
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Knowledge base not initialized"
        )
    return config


@router.delete("", response_model=DeleteResponse)
async def delete_knowledge_base(
    manager: Annotated[KnowledgeBaseManager, Depends(get_knowledge_base)],
) -> DeleteResponse:
    """Delete the external store and the local handle."""
    try:
        deleted = await manager.delete()
    except ExternalProviderError as e:
        raise _provider_error(e) from e
    return DeleteResponse(deleted=deleted)
