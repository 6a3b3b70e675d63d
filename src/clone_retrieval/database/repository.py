"""
Social Content Repository

Filtered and hybrid search over ingested social content.
Scores combine PostgreSQL full-text rank and pgvector cosine similarity.
"""

import json
import logging
from datetime import datetime
from typing import Any, List, Optional

import asyncpg

from clone_retrieval.errors import RepositoryError
from clone_retrieval.models.store_records import SocialContentRow
from clone_retrieval.stores.base import ContentRepository

logger = logging.getLogger("clone_retrieval.repository")

PUBLISHED_AT = "COALESCE(sc.social_content_created_at, sc.created_at)"


class _Params:
    """Collects positional asyncpg parameters and hands out $n placeholders."""

    def __init__(self):
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


class SocialContentRepository(ContentRepository):
    """
    Repository for social content search.

    Provides methods for:
    - Source/date filtered hybrid search (direct retrieval path)
    - Full-text search
    - Hybrid keyword + vector search
    - Lookup by platform external id
    """

    def __init__(
        self,
        connection_string: str = None,
        embedding_dimension: int = 1536,
        keyword_weight: float = 0.3,
        vector_weight: float = 0.7,
    ):
        self.connection_string = connection_string or "postgresql://127.0.0.1/clone_retrieval"
        self.embedding_dimension = embedding_dimension
        self.keyword_weight = keyword_weight
        self.vector_weight = vector_weight
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Initialize connection pool."""
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(self.connection_string, min_size=2, max_size=10)

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    async def _fetch(self, sql: str, *args: Any) -> List[Any]:
        if self._pool is None:
            raise RepositoryError("Repository is not connected")
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetch(sql, *args)
        except asyncpg.PostgresError as e:
            raise RepositoryError(f"Social content query failed: {e}") from e

    # ========== Filtered Retrieval ==========

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
        Query social content with source, date and semantic filters.

        Rows whose publish date is NULL are kept inside a date window
        (treated as recent). With a query and a full-width embedding the
        score is ts_rank * keyword_weight + cosine similarity * vector_weight
        and nothing is filtered out by score; otherwise every row scores 1.0
        and ordering is by date.
        """
        logger.info(
            f"[Relational] Filtered query - app_id: {app_id}, sources: [{', '.join(sources or []) or 'all'}], "
            f"dateRange: {start_date.isoformat() if start_date else None} to "
            f"{end_date.isoformat() if end_date else None}"
        )

        params = _Params()
        conditions = [f"sc.app_id = {params.add(app_id)}"]

        if sources:
            conditions.append(f"sc.source = ANY({params.add(list(sources))}::text[])")

        if start_date and end_date:
            start = params.add(start_date)
            end = params.add(end_date)
            conditions.append(
                f"(sc.social_content_created_at IS NULL OR "
                f"(sc.social_content_created_at >= {start} AND sc.social_content_created_at <= {end}))"
            )

        if query and self._is_full_embedding(query_embedding):
            q = params.add(query)
            emb = params.add(str(query_embedding))
            score_sql = (
                f"COALESCE(ts_rank(sc.search_vector, plainto_tsquery('simple', {q})), 0) * {self.keyword_weight} + "
                f"COALESCE(1 - (sc.embedding <=> {emb}::vector), 0) * {self.vector_weight}"
            )
            order_sql = f"relevance_score DESC, {PUBLISHED_AT} DESC"
        else:
            score_sql = "1.0"
            order_sql = f"{PUBLISHED_AT} DESC"
            logger.info("[Relational] Using date-only sorting (no semantic search)")

        sql = f"""
            SELECT sc.*, ({score_sql}) AS relevance_score
            FROM social_contents sc
            WHERE {' AND '.join(conditions)}
            ORDER BY {order_sql}
            LIMIT {params.add(limit)}
        """
        logger.debug(f"[Relational SQL] {sql}")

        rows = await self._fetch(sql, *params.values)
        logger.info(f"[Relational] Filtered query returned {len(rows)} results")
        return [self._row_to_content(row) for row in rows]

    # ========== Search ==========

    async def fulltext_search(
        self,
        query: str,
        app_id: Optional[int] = None,
        limit: int = 10,
    ) -> List[SocialContentRow]:
        """
        Full-text search using PostgreSQL's tsvector.
        """
        params = _Params()
        q = params.add(query)
        conditions = [f"sc.search_vector @@ plainto_tsquery('simple', {q})"]
        if app_id is not None:
            conditions.append(f"sc.app_id = {params.add(app_id)}")

        sql = f"""
            SELECT sc.*, ts_rank(sc.search_vector, plainto_tsquery('simple', {q})) AS relevance_score
            FROM social_contents sc
            WHERE {' AND '.join(conditions)}
            ORDER BY relevance_score DESC
            LIMIT {params.add(limit)}
        """
        rows = await self._fetch(sql, *params.values)
        logger.info(f"[Relational] Full-text search found {len(rows)} results")
        return [self._row_to_content(row) for row in rows]

    async def hybrid_search(
        self,
        keyword: str,
        query_embedding: Optional[List[float]] = None,
        app_id: Optional[int] = None,
        limit: int = 10,
        min_similarity: float = 0.5,
    ) -> List[SocialContentRow]:
        """
        Hybrid search combining full-text rank and vector similarity.

        Matches rows that hit the full-text query or are semantically
        close (similarity > min_similarity). Falls back to full-text
        search when no usable embedding is given.
        """
        if not self._is_full_embedding(query_embedding):
            return await self.fulltext_search(keyword, app_id, limit)

        params = _Params()
        q = params.add(keyword)
        emb = params.add(str(query_embedding))
        conditions = [
            f"(sc.search_vector @@ plainto_tsquery('simple', {q}) OR "
            f"(sc.embedding IS NOT NULL AND 1 - (sc.embedding <=> {emb}::vector) > {params.add(min_similarity)}))"
        ]
        if app_id is not None:
            conditions.append(f"sc.app_id = {params.add(app_id)}")

        sql = f"""
            SELECT sc.*,
                   COALESCE(ts_rank(sc.search_vector, plainto_tsquery('simple', {q})), 0) * {self.keyword_weight} +
                   COALESCE(1 - (sc.embedding <=> {emb}::vector), 0) * {self.vector_weight} AS relevance_score
            FROM social_contents sc
            WHERE {' AND '.join(conditions)}
            ORDER BY relevance_score DESC
            LIMIT {params.add(limit)}
        """
        rows = await self._fetch(sql, *params.values)
        return [self._row_to_content(row) for row in rows]

    async def find_by_external_id(
        self,
        external_id: str,
        app_id: int,
        source: Optional[str] = None,
    ) -> Optional[SocialContentRow]:
        """Find the original content a memory was derived from."""
        params = _Params()
        conditions = [
            f"sc.external_id = {params.add(external_id)}",
            f"sc.app_id = {params.add(app_id)}",
        ]
        if source:
            conditions.append(f"sc.source = {params.add(source)}")

        sql = f"""
            SELECT sc.*, 1.0 AS relevance_score
            FROM social_contents sc
            WHERE {' AND '.join(conditions)}
            LIMIT 1
        """
        rows = await self._fetch(sql, *params.values)
        return self._row_to_content(rows[0]) if rows else None

    # ========== Helpers ==========

    def _is_full_embedding(self, embedding: Optional[List[float]]) -> bool:
        return bool(embedding) and len(embedding) == self.embedding_dimension

    @staticmethod
    def _row_to_content(row: Any) -> SocialContentRow:
        metadata = row["metadata"]
        if isinstance(metadata, str):
            metadata = json.loads(metadata) if metadata else {}

        score = row["relevance_score"]
        return SocialContentRow(
            id=row["id"],
            content=row["content"],
            relevance_score=float(score) if score is not None else 1.0,
            source=row["source"],
            type=row["type"],
            external_id=row["external_id"],
            social_content_created_at=row["social_content_created_at"],
            created_at=row["created_at"],
            metadata=metadata or {},
        )
