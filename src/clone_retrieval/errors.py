"""
Exception hierarchy for retrieval collaborators.

Adapters wrap driver/transport failures in these types so callers can
tell which boundary failed.
"""


class RetrievalError(Exception):
    """Base class for all retrieval failures."""
    pass


class ClassificationError(RetrievalError):
    """Raised when a query cannot be classified."""
    pass


class EmbeddingError(RetrievalError):
    """Raised when embedding generation fails."""
    pass


class StoreError(RetrievalError):
    """Raised when a backing store request fails."""
    pass


class VectorStoreError(StoreError):
    pass


class MemoryStoreError(StoreError):
    pass


class RepositoryError(StoreError):
    pass
