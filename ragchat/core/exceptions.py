from typing import Optional


class RAGChatError(Exception):
    """Base exception for the RAG chat backend."""


class ConfigurationError(RAGChatError):
    """Raised when a required API key, URL or connection string is missing."""


class UpstreamServiceError(RAGChatError):
    """Base class for failures reported by a remote model endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class EmbeddingServiceError(UpstreamServiceError):
    """Raised when the embedding endpoint answers with a non-2xx status."""


class EmbeddingResponseMalformed(UpstreamServiceError):
    """Raised when the embedding response lacks the expected vector array."""


class LLMServiceError(UpstreamServiceError):
    """Raised when the chat-completion endpoint answers with a non-2xx status."""


class LLMResponseMalformed(UpstreamServiceError):
    """Raised when the chat-completion response has no usable choice."""


class DocumentValidationError(RAGChatError, ValueError):
    """Input rejected before any side effect happens."""


class UnsupportedFileTypeError(DocumentValidationError):
    pass


class FileTooLargeError(DocumentValidationError):
    pass


class EmptyDocumentError(DocumentValidationError):
    pass


class FileCacheError(RAGChatError):
    """Raised when writing to the attachment cache fails."""


class DocumentNotFoundError(RAGChatError):
    pass


class DocumentAccessDeniedError(RAGChatError):
    pass
