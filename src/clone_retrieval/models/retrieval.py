"""
Retrieval Data Models

Request, normalized result and response shapes for the retrieve() call.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from clone_retrieval.models.query_analysis import QueryAnalysis


ConfidenceLevel = Literal["high", "medium", "low", "none"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RetrievalRequest(BaseModel):
    """Input of a single retrieve() call."""

    query: str
    user_id: int
    app_id: Optional[int] = None
    max_results: Optional[int] = Field(
        default=None,
        description="Requested result count; each source applies its own default when unset"
    )


class RetrievalResult(BaseModel):
    """
    Normalized retrieval unit.

    Every source (vector store, memory store, relational store) maps into
    this shape so dedup and re-ranking can treat them uniformly.
    """

    id: str
    content: str
    relevance_score: float = Field(
        default=0.0,
        description="Higher is more relevant; capped at 1.0 after boosting"
    )
    source: str = Field(
        ...,
        description="Platform name for relational rows, 'chroma' or 'mem0' otherwise"
    )
    type: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MemorySearchResult(BaseModel):
    """Memory-shaped output item (vector store or memory store)."""

    id: str
    memory: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str
    relevance_score: float
    source: Literal["mem0", "chroma"]


class ContentSearchResult(BaseModel):
    """Content-shaped output item (relational social content)."""

    id: int
    content: str
    source: str
    type: Optional[str] = None
    created_at: datetime
    relevance_score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RetrievalResponse(BaseModel):
    """
    Final output of retrieve().

    Always well-formed: degraded confidence together with an empty or
    partial result list is the only failure signal.
    """

    query: str
    memories: List[MemorySearchResult] = Field(default_factory=list)
    contents: List[ContentSearchResult] = Field(default_factory=list)
    total_results: int = 0
    processing_time: float = Field(default=0.0, description="Elapsed milliseconds")
    query_analysis: Optional[QueryAnalysis] = None
    confidence_level: ConfidenceLevel = "none"
    sources_used: List[str] = Field(default_factory=list)
