"""Knowledge base models: persisted handle, vector-store API payloads, summaries."""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeBaseHandle(BaseModel):
    """Persisted pointer to the active external vector store.

    Serialized with camelCase keys: {vectorStoreId, name, createdAt, lastUpdated}.
    """

    model_config = ConfigDict(populate_by_name=True)

    vector_store_id: str = Field(alias="vectorStoreId")
    name: str = Field(default="", alias="name")
    created_at: datetime = Field(alias="createdAt")
    last_updated: datetime = Field(alias="lastUpdated")


# --- External vector-store / file API payloads ---


class FileCounts(BaseModel):
    """Per-status file counters of a vector store."""

    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    total: int = 0


class ExpiresAfter(BaseModel):
    """Expiration policy of a vector store."""

    anchor: str = "last_active_at"
    days: int = 365


class VectorStore(BaseModel):
    """Vector store object returned by the API."""

    model_config = ConfigDict(extra="ignore")

    id: str
    object: str = "vector_store"
    created_at: int = 0
    name: str | None = None
    usage_bytes: int = 0
    file_counts: FileCounts = Field(default_factory=FileCounts)
    status: str = ""
    expires_after: ExpiresAfter | None = None
    expires_at: int | None = None
    last_active_at: int | None = None


class VectorStoreList(BaseModel):
    """Paged list of vector stores."""

    model_config = ConfigDict(extra="ignore")

    object: str = "list"
    data: list[VectorStore] = Field(default_factory=list)
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool = False


class UploadedFile(BaseModel):
    """File object returned by the files endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str
    object: str = "file"
    bytes: int = 0
    created_at: int = 0
    filename: str = ""
    purpose: str = ""


class VectorStoreFile(BaseModel):
    """File attached to a vector store.

    status is one of in_progress, completed, failed, cancelled.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    object: str = "vector_store.file"
    usage_bytes: int = 0
    created_at: int = 0
    vector_store_id: str = ""
    status: str = ""
    last_error: dict[str, Any] | None = None


class VectorStoreFileList(BaseModel):
    """Paged list of vector-store files."""

    model_config = ConfigDict(extra="ignore")

    object: str = "list"
    data: list[VectorStoreFile] = Field(default_factory=list)
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool = False


# --- Summaries exposed to callers ---


class KnowledgeBaseFileInfo(BaseModel):
    """Summary of one knowledge base file."""

    file_id: str
    status: str
    usage_bytes: int = 0
    created_at: datetime


class KnowledgeBaseInfo(BaseModel):
    """Current state of the knowledge base."""

    vector_store_id: str
    name: str
    status: str
    file_count: int = 0
    completed_files: int = 0
    in_progress_files: int = 0
    failed_files: int = 0
    cancelled_files: int = 0
    usage_bytes: int = 0
    created_at: datetime
    last_active_at: datetime | None = None
    files: list[KnowledgeBaseFileInfo] = Field(default_factory=list)


class KnowledgeBaseStatus(BaseModel):
    """Readiness summary of the knowledge base."""

    is_initialized: bool = False
    is_ready: bool = False
    vector_store_id: str | None = None
    name: str | None = None
    total_files: int = 0
    completed_files: int = 0
    in_progress_files: int = 0
    failed_files: int = 0
    message: str = ""


class ToolDefinition(BaseModel):
    """Assistant tool entry."""

    type: str


class AssistantConfiguration(BaseModel):
    """Configuration for an assistant that searches the knowledge base."""

    model: str
    name: str
    instructions: str
    tools: list[ToolDefinition] = Field(default_factory=list)
    vector_store_id: str

    def to_api_payload(self) -> dict[str, Any]:
        """Build the assistants API request body."""
        return {
            "model": self.model,
            "name": self.name,
            "instructions": self.instructions,
            "tools": [tool.model_dump() for tool in self.tools],
            "tool_resources": {"file_search": {"vector_store_ids": [self.vector_store_id]}},
        }

    def to_json(self) -> str:
        """Serialize the API payload as indented JSON."""
        return json.dumps(self.to_api_payload(), indent=2)
