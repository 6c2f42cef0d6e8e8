"""FastAPI dependencies and shared HTTP helpers."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, UploadFile, status

from ragchat.config import Settings
from ragchat.docs.uploads import validate_upload
from ragchat.errors import UploadRejectedError
from ragchat.knowledge.manager import KnowledgeBaseManager
from ragchat.services import Services

_UPLOAD_STATUS = {
    "size": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "extension": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "empty": status.HTTP_400_BAD_REQUEST,
}


def get_services(request: Request) -> Services:
    """Services container built in the application lifespan."""
    services: Services = request.app.state.services
    return services


def get_knowledge_base(
    services: Annotated[Services, Depends(get_services)],
) -> KnowledgeBaseManager:
    """Knowledge base manager, or 503 when no vector store API is configured."""
    if services.knowledge_base is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Knowledge base requires OPENAI_API_KEY",
        )
    return services.knowledge_base


async def read_upload(file: UploadFile, settings: Settings) -> tuple[str, bytes]:
    """Validate and read an uploaded file.

    Returns:
        (filename, data)

    Raises:
        HTTPException: 413 / 415 / 400 when the upload is rejected
    """
    filename = file.filename or ""
    try:
        # Reject oversized uploads before reading them when the size is known
        if file.size is not None:
            validate_upload(filename, file.size, settings)
        data = await file.read()
        validate_upload(filename, len(data), settings)
    except UploadRejectedError as e:
        raise HTTPException(status_code=_UPLOAD_STATUS[e.reason], detail=str(e)) from e
    return filename, data
