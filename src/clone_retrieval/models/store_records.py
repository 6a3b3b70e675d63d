"""
Store Record Models

Raw rows returned by the backing stores before normalization into
RetrievalResult.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class EmbeddingResult(BaseModel):
    """Dense vector for a piece of text."""
    embedding: List[float]


class VectorStoreHit(BaseModel):
    """Nearest-neighbour hit from the vector store."""
    id: str
    text: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    score: Optional[float] = None


class MemoryStoreHit(BaseModel):
    """Scored memory snippet from the long-term memory service."""
    id: str
    memory: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    score: float = 0.0
    created_at: Optional[str] = None
    user_id: Optional[str] = None


class SocialContentRow(BaseModel):
    """
    Ingested social/content item from the relational store.

    relevance_score is the hybrid (lexical + embedding) score when the
    query carried an embedding, otherwise a constant 1.0.
    """
    id: int
    content: str
    relevance_score: float = 1.0
    source: str
    type: Optional[str] = None
    external_id: Optional[str] = None
    social_content_created_at: Optional[datetime] = None
    created_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)
