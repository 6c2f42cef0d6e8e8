"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ragchat.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./ragchat.db"

    # Logging
    log_level: str = "INFO"

    # LLM provider
    llm_provider: Literal["openai", "azure", "stub"] = "openai"
    openai_api_key: SecretStr | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    azure_openai_endpoint: str | None = None
    azure_openai_api_version: str = "2024-06-01"
    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_batch_size: int = 64

    # Outbound calls
    request_timeout_seconds: float = 30.0
    max_retries: int = 2

    # Chunking (tokens)
    chunk_max_tokens: int = 400
    chunk_overlap_tokens: int = 40
    chunk_tokenizer: Literal["tiktoken", "whitespace"] = "tiktoken"

    # Retrieval
    rag_top_k: int = 3

    # Context injection strategy
    context_mode: Literal["none", "static", "rag"] = "rag"

    # Knowledge base (external vector store)
    knowledge_base_config_path: str = "vectorstore.config.json"
    knowledge_base_name: str = "Knowledge Base"
    knowledge_base_description: str = "the uploaded reference documentation"
    vector_store_expires_after_days: int = 365

    # Upload surface
    upload_allowed_extensions: list[str] = [".pdf", ".txt", ".md", ".docx"]
    upload_max_bytes: int = 20 * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def validate_startup(settings: Settings) -> None:
    """Refuse to start when the selected provider is missing credentials.

    Raises:
        ConfigurationError: If a real provider is configured without an API key
            (or, for Azure, without an endpoint).
    """
    if settings.chunk_overlap_tokens >= settings.chunk_max_tokens:
        raise ConfigurationError("CHUNK_OVERLAP_TOKENS must be smaller than CHUNK_MAX_TOKENS")

    if settings.llm_provider == "stub":
        return

    if settings.openai_api_key is None or not settings.openai_api_key.get_secret_value():
        raise ConfigurationError(
            f"OPENAI_API_KEY must be set when LLM_PROVIDER={settings.llm_provider}"
        )

    if settings.llm_provider == "azure" and not settings.azure_openai_endpoint:
        raise ConfigurationError("AZURE_OPENAI_ENDPOINT must be set when LLM_PROVIDER=azure")
