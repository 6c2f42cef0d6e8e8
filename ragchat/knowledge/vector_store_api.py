"""HTTP client for the OpenAI vector store and file APIs (assistants v2)."""

import logging
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ragchat.config import Settings
from ragchat.errors import ConfigurationError, ExternalProviderError
from ragchat.models.knowledge import (
    UploadedFile,
    VectorStore,
    VectorStoreFile,
    VectorStoreFileList,
    VectorStoreList,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class VectorStoreApi(Protocol):
    """Operations the knowledge base manager needs from the external store."""

    async def create_vector_store(self, name: str, expires_after_days: int) -> VectorStore: ...

    async def get_vector_store(self, vector_store_id: str) -> VectorStore: ...

    async def list_vector_stores(self) -> VectorStoreList: ...

    async def delete_vector_store(self, vector_store_id: str) -> bool: ...

    async def upload_file(self, data: bytes, filename: str) -> UploadedFile: ...

    async def add_file_to_vector_store(
        self, vector_store_id: str, file_id: str
    ) -> VectorStoreFile: ...

    async def list_vector_store_files(self, vector_store_id: str) -> VectorStoreFileList: ...

    async def remove_file_from_vector_store(self, vector_store_id: str, file_id: str) -> bool: ...


class OpenAIVectorStoreClient:
    """Vector store / file API client over httpx."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        auth_header: str = "Authorization",
        params: dict[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Provider API key
            base_url: API root, e.g. https://api.openai.com/v1
            client: Optional httpx client (for testing with mocks)
            timeout: Request timeout in seconds when the client is created here
            auth_header: "Authorization" (Bearer) for OpenAI, "api-key" for Azure
            params: Query parameters added to every request (Azure api-version)
        """
        self.base_url = base_url.rstrip("/")
        token = f"Bearer {api_key}" if auth_header == "Authorization" else api_key
        self._headers = {auth_header: token, "OpenAI-Beta": "assistants=v2"}
        self._params = params or {}
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "OpenAIVectorStoreClient":
        """Build a client for the configured provider.

        Raises:
            ConfigurationError: If the API key (or Azure endpoint) is missing
        """
        if settings.openai_api_key is None or not settings.openai_api_key.get_secret_value():
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        api_key = settings.openai_api_key.get_secret_value()

        if settings.llm_provider == "azure":
            if not settings.azure_openai_endpoint:
                raise ConfigurationError("AZURE_OPENAI_ENDPOINT is not configured")
            return cls(
                api_key,
                base_url=f"{settings.azure_openai_endpoint.rstrip('/')}/openai",
                client=client,
                timeout=settings.request_timeout_seconds,
                auth_header="api-key",
                params={"api-version": settings.azure_openai_api_version},
            )

        return cls(
            api_key,
            base_url=settings.openai_base_url,
            client=client,
            timeout=settings.request_timeout_seconds,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        vector_store_id: str | None = None,
        file_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(
                method, url, headers=self._headers, params=self._params or None, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalProviderError(
                f"{method} {path} failed with HTTP {e.response.status_code}: {e.response.text}",
                vector_store_id=vector_store_id,
                file_id=file_id,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalProviderError(
                f"{method} {path} failed: {e}",
                vector_store_id=vector_store_id,
                file_id=file_id,
            ) from e
        return response

    def _json(
        self,
        response: httpx.Response,
        *,
        vector_store_id: str | None = None,
        file_id: str | None = None,
    ) -> dict[str, Any]:
        """Decode a successful response body as a JSON object.

        Raises:
            ExternalProviderError: If the body is not JSON or not an object
        """
        request = response.request
        try:
            body = response.json()
        except ValueError as e:
            raise ExternalProviderError(
                f"{request.method} {request.url.path} returned an unreadable body: {e}",
                vector_store_id=vector_store_id,
                file_id=file_id,
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise ExternalProviderError(
                f"{request.method} {request.url.path} returned {type(body).__name__}, "
                "expected an object",
                vector_store_id=vector_store_id,
                file_id=file_id,
                status_code=response.status_code,
            )
        return body

    def _parse(
        self,
        response: httpx.Response,
        model: type[ModelT],
        *,
        vector_store_id: str | None = None,
        file_id: str | None = None,
    ) -> ModelT:
        body = self._json(response, vector_store_id=vector_store_id, file_id=file_id)
        try:
            return model.model_validate(body)
        except ValidationError as e:
            request = response.request
            raise ExternalProviderError(
                f"{request.method} {request.url.path} returned an unexpected {model.__name__}: {e}",
                vector_store_id=vector_store_id,
                file_id=file_id,
                status_code=response.status_code,
            ) from e

    async def create_vector_store(self, name: str, expires_after_days: int = 365) -> VectorStore:
        """Create a vector store that expires after a period of inactivity."""
        body = {
            "name": name,
            "expires_after": {"anchor": "last_active_at", "days": expires_after_days},
        }
        response = await self._request("POST", "/vector_stores", json=body)
        store = self._parse(response, VectorStore)
        logger.info(f"Created vector store {store.id} ({name!r})")
        return store

    async def get_vector_store(self, vector_store_id: str) -> VectorStore:
        response = await self._request(
            "GET", f"/vector_stores/{vector_store_id}", vector_store_id=vector_store_id
        )
        return self._parse(response, VectorStore, vector_store_id=vector_store_id)

    async def list_vector_stores(self) -> VectorStoreList:
        response = await self._request("GET", "/vector_stores")
        return self._parse(response, VectorStoreList)

    async def delete_vector_store(self, vector_store_id: str) -> bool:
        response = await self._request(
            "DELETE", f"/vector_stores/{vector_store_id}", vector_store_id=vector_store_id
        )
        body = self._json(response, vector_store_id=vector_store_id)
        deleted = bool(body.get("deleted", False))
        logger.info(f"Deleted vector store {vector_store_id}: {deleted}")
        return deleted

    async def upload_file(self, data: bytes, filename: str) -> UploadedFile:
        """Upload raw bytes to the files endpoint with purpose=assistants."""
        response = await self._request(
            "POST",
            "/files",
            files={"file": (filename, data)},
            data={"purpose": "assistants"},
        )
        uploaded = self._parse(response, UploadedFile)
        logger.info(f"Uploaded file {uploaded.id} ({filename!r}, {len(data)} bytes)")
        return uploaded

    async def add_file_to_vector_store(self, vector_store_id: str, file_id: str) -> VectorStoreFile:
        response = await self._request(
            "POST",
            f"/vector_stores/{vector_store_id}/files",
            vector_store_id=vector_store_id,
            file_id=file_id,
            json={"file_id": file_id},
        )
        return self._parse(
            response, VectorStoreFile, vector_store_id=vector_store_id, file_id=file_id
        )

    async def list_vector_store_files(self, vector_store_id: str) -> VectorStoreFileList:
        response = await self._request(
            "GET", f"/vector_stores/{vector_store_id}/files", vector_store_id=vector_store_id
        )
        return self._parse(response, VectorStoreFileList, vector_store_id=vector_store_id)

    async def remove_file_from_vector_store(self, vector_store_id: str, file_id: str) -> bool:
        response = await self._request(
            "DELETE",
            f"/vector_stores/{vector_store_id}/files/{file_id}",
            vector_store_id=vector_store_id,
            file_id=file_id,
        )
        body = self._json(response, vector_store_id=vector_store_id, file_id=file_id)
        return bool(body.get("deleted", False))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
