"""Data models package."""

from clone_retrieval.models.query_analysis import QueryAnalysis, QueryIntent, TemporalConstraint
from clone_retrieval.models.retrieval import (
    ContentSearchResult,
    MemorySearchResult,
    RetrievalRequest,
    RetrievalResponse,
    RetrievalResult,
)
from clone_retrieval.models.store_records import (
    EmbeddingResult,
    MemoryStoreHit,
    SocialContentRow,
    VectorStoreHit,
)

__all__ = [
    "QueryAnalysis",
    "QueryIntent",
    "TemporalConstraint",
    "RetrievalRequest",
    "RetrievalResult",
    "RetrievalResponse",
    "MemorySearchResult",
    "ContentSearchResult",
    "EmbeddingResult",
    "MemoryStoreHit",
    "SocialContentRow",
    "VectorStoreHit",
]
