"""Knowledge base lifecycle over an external vector store."""

import asyncio
import logging
from datetime import datetime, timezone

from ragchat.config import Settings
from ragchat.errors import ExternalProviderError, KnowledgeBaseNotInitializedError
from ragchat.knowledge.handle_store import CachedHandle, HandleStore
from ragchat.knowledge.vector_store_api import VectorStoreApi
from ragchat.models.knowledge import (
    AssistantConfiguration,
    KnowledgeBaseFileInfo,
    KnowledgeBaseHandle,
    KnowledgeBaseInfo,
    KnowledgeBaseStatus,
    ToolDefinition,
)

logger = logging.getLogger(__name__)


def _from_unix(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class KnowledgeBaseManager:
    """Creates, extends, inspects and deletes the knowledge base.

    The handle is written only after every external step of initialize()
    succeeds. External resources created before a failing step are not
    rolled back. Mutations are serialized per process; across processes the
    record is last-writer-wins.
    """

    def __init__(
        self,
        api: VectorStoreApi,
        settings: Settings,
        handle: CachedHandle | None = None,
    ) -> None:
        self._api = api
        self._settings = settings
        self._handle = handle or CachedHandle(HandleStore(settings.knowledge_base_config_path))
        self._lock = asyncio.Lock()

    @property
    def api(self) -> VectorStoreApi:
        return self._api

    async def current_handle(self) -> KnowledgeBaseHandle | None:
        return await self._handle.get()

    async def is_initialized(self) -> bool:
        return await self._handle.get() is not None

    async def refresh(self) -> KnowledgeBaseHandle | None:
        """Drop the cached handle and re-read the durable record."""
        return await self._handle.refresh()

    async def initialize(
        self, data: bytes, filename: str, name: str | None = None
    ) -> KnowledgeBaseHandle:
        """Create a vector store holding one file and persist its handle.

        Args:
            data: Raw file bytes
            filename: File name sent to the files endpoint
            name: Vector store name (defaults to the configured name)

        Returns:
            The new handle, which replaces any previous one

        Raises:
            ExternalProviderError: If creating, uploading or attaching fails
        """
        store_name = name or self._settings.knowledge_base_name

        async with self._lock:
            previous = await self._handle.get()

            store = await self._api.create_vector_store(
                store_name, self._settings.vector_store_expires_after_days
            )
            uploaded = await self._api.upload_file(data, filename)
            await self._api.add_file_to_vector_store(store.id, uploaded.id)

            now = datetime.now(timezone.utc)
            handle = KnowledgeBaseHandle(
                vector_store_id=store.id,
                name=store.name or store_name,
                created_at=now,
                last_updated=now,
            )
            await self._handle.set(handle)

        if previous is not None and previous.vector_store_id != store.id:
            logger.warning(
                f"Knowledge base {previous.vector_store_id} superseded by {store.id}; "
                "the previous vector store was not deleted"
            )
        logger.info(f"Knowledge base initialized: {store.id} with file {uploaded.id}")
        return handle

    async def add_file(self, data: bytes, filename: str) -> str:
        """Upload a file and attach it to the current vector store.

        Returns:
            The uploaded file id

        Raises:
            KnowledgeBaseNotInitializedError: If there is no handle
            ExternalProviderError: If uploading or attaching fails
        """
        async with self._lock:
            handle = await self._handle.get()
            if handle is None:
                raise KnowledgeBaseNotInitializedError(
                    "Knowledge base not initialized. Initialize it before adding files."
                )

            uploaded = await self._api.upload_file(data, filename)
            await self._api.add_file_to_vector_store(handle.vector_store_id, uploaded.id)

            await self._handle.set(
                handle.model_copy(update={"last_updated": datetime.now(timezone.utc)})
            )

        logger.info(f"Added file {uploaded.id} to knowledge base {handle.vector_store_id}")
        return uploaded.id

    async def get_info(self) -> KnowledgeBaseInfo | None:
        """Fetch the current store summary, or None if absent or unreachable."""
        handle = await self._handle.get()
        if handle is None:
            return None

        vector_store_id = handle.vector_store_id
        try:
            store = await self._api.get_vector_store(vector_store_id)
            files = await self._api.list_vector_store_files(vector_store_id)
        except ExternalProviderError as e:
            logger.error(f"Error getting knowledge base info for {vector_store_id}: {e}")
            return None

        counts = store.file_counts
        return KnowledgeBaseInfo(
            vector_store_id=store.id,
            name=store.name or handle.name,
            status=store.status,
            file_count=counts.total,
            completed_files=counts.completed,
            in_progress_files=counts.in_progress,
            failed_files=counts.failed,
            cancelled_files=counts.cancelled,
            usage_bytes=store.usage_bytes,
            created_at=_from_unix(store.created_at),
            last_active_at=(
                _from_unix(store.last_active_at) if store.last_active_at is not None else None
            ),
            files=[
                KnowledgeBaseFileInfo(
                    file_id=f.id,
                    status=f.status,
                    usage_bytes=f.usage_bytes,
                    created_at=_from_unix(f.created_at),
                )
                for f in files.data
            ],
        )

    async def get_status(self) -> KnowledgeBaseStatus:
        """Summarize whether the knowledge base can answer questions yet."""
        handle = await self._handle.get()
        if handle is None:
            return KnowledgeBaseStatus(
                message="Knowledge base not initialized. Initialize it by uploading a document."
            )

        info = await self.get_info()
        if info is None:
            return KnowledgeBaseStatus(
                is_initialized=True,
                vector_store_id=handle.vector_store_id,
                name=handle.name,
                message="Could not retrieve knowledge base information.",
            )

        is_ready = info.completed_files > 0
        if is_ready:
            message = f"Knowledge base ready with {info.completed_files} file(s)"
        elif info.in_progress_files > 0:
            message = f"Knowledge base processing ({info.in_progress_files} file(s) in progress)"
        else:
            message = "Knowledge base has no completed files"

        return KnowledgeBaseStatus(
            is_initialized=True,
            is_ready=is_ready,
            vector_store_id=info.vector_store_id,
            name=info.name,
            total_files=info.file_count,
            completed_files=info.completed_files,
            in_progress_files=info.in_progress_files,
            failed_files=info.failed_files,
            message=message,
        )

    async def delete(self) -> bool:
        """Delete the external store, then the local record.

        Returns:
            False if there was nothing to delete

        Raises:
            ExternalProviderError: If the external delete fails (record is kept)
        """
        async with self._lock:
            handle = await self._handle.get()
            if handle is None:
                return False

            await self._api.delete_vector_store(handle.vector_store_id)
            await self._handle.clear()

        logger.info(f"Deleted knowledge base {handle.vector_store_id}")
        return True

    async def assistant_configuration(self) -> AssistantConfiguration | None:
        """Build an assistant definition that searches the current store."""
        handle = await self._handle.get()
        if handle is None:
            logger.warning("Cannot build assistant configuration without a knowledge base")
            return None

        description = self._settings.knowledge_base_description
        return AssistantConfiguration(
            model=self._settings.chat_model,
            name=f"{self._settings.knowledge_base_name} Assistant",
            instructions=(
                f"You are a helpful assistant with access to {description}.\n"
                "Use the file_search tool to find relevant information when answering questions.\n"
                "Always provide accurate information based on the documentation.\n"
                "If you cannot find the answer in the documentation, say so clearly."
            ),
            tools=[ToolDefinition(type="file_search")],
            vector_store_id=handle.vector_store_id,
        )
