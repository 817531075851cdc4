"""Exception classes for retrieval and quiz generation."""


class AcadragError(Exception):
    """Base exception for acadrag errors."""
    pass


class InvalidQueryError(AcadragError, ValueError):
    """Raised when a caller submits an unusable request (e.g. a blank query)."""
    pass


class UpstreamServiceError(AcadragError):
    """Raised when a remote collaborator fails or times out."""
    pass


class EmbeddingServiceError(UpstreamServiceError):
    """Raised when the embedding provider is unreachable or returns bad vectors."""
    pass


class VectorStoreError(UpstreamServiceError):
    """Raised when the vector store cannot be queried."""
    pass


class SearchTimeoutError(AcadragError):
    """Raised when a whole search request exceeds its time budget."""
    pass


class QuizGenerationError(AcadragError):
    """Raised when no acceptable quiz questions could be produced."""
    pass


class QuizBatchRejected(QuizGenerationError):
    """Raised for a generated batch that must be regenerated.

    Used as the retry signal inside the quiz generator; never surfaced to callers.
    """
    pass


class NoSourceMaterialError(QuizGenerationError):
    """Raised when no course material matches a quiz request."""
    pass
