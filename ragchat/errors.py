"""Exception types shared across the service."""


class RagChatError(Exception):
    """Base exception for the service."""

    pass


class ConfigurationError(RagChatError):
    """Required configuration is missing or invalid. Fatal at startup."""

    pass


class ExternalProviderError(RagChatError):
    """A call to an external embedding/chat/vector-store endpoint failed."""

    def __init__(
        self,
        message: str,
        *,
        vector_store_id: str | None = None,
        file_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.vector_store_id = vector_store_id
        self.file_id = file_id
        self.status_code = status_code


class EmbeddingUnavailableError(ExternalProviderError):
    """Embeddings could not be produced for the whole request."""

    pass


class KnowledgeBaseNotInitializedError(RagChatError):
    """A mutation requires an initialized knowledge base but none exists."""

    pass


class UploadRejectedError(RagChatError):
    """Upload failed validation before any processing."""

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class UnsupportedMediaTypeError(RagChatError):
    """No text extractor is available for the given media type."""

    pass


class DocumentExtractionError(RagChatError):
    """The document bytes could not be parsed by the extractor for their type."""

    pass


class DimensionMismatchError(ValueError):
    """Vectors of different dimensions were compared or stored."""

    pass
