"""
Base classes for backing stores.

The orchestrator depends only on these interfaces; concrete adapters
(Chroma, mem0, PostgreSQL) live next to them.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from clone_retrieval.models.store_records import MemoryStoreHit, SocialContentRow, VectorStoreHit


class VectorStore(ABC):
    """Approximate nearest-neighbour search over a tenant-scoped collection."""

    @abstractmethod
    async def query(
        self,
        text: str,
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorStoreHit]:
        """
        Search the collection for text.

        Args:
            text: Query text
            top_k: Number of neighbours to return
            filter: Metadata conjunction, e.g. {"$and": [{"appId": 1}, {"userId": 2}]}

        Returns:
            Hits ordered by similarity, each carrying a score
        """
        pass


class MemoryStore(ABC):
    """Long-term memory search service."""

    @abstractmethod
    async def search_memories(
        self,
        query: str,
        user_id: int,
        app_id: Optional[int] = None,
    ) -> List[MemoryStoreHit]:
        pass


class ContentRepository(ABC):
    """Relational store of ingested social content."""

    @abstractmethod
    async def query_with_filters(
        self,
        app_id: Optional[int],
        query: Optional[str] = None,
        query_embedding: Optional[List[float]] = None,
        sources: Optional[List[str]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 30,
    ) -> List[SocialContentRow]:
        """
        Hybrid (embedding + lexical) search restricted by tenant, sources
        and an optional date window.
        """
        pass

    async def connect(self) -> None:
        """Open connections; repositories without a pool need nothing."""
        return None

    async def disconnect(self) -> None:
        return None
