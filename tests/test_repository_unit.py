"""
Unit Tests for Social Content Repository

Tests repository logic using mocks for the database connection.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from clone_retrieval.database.repository import SocialContentRepository
from clone_retrieval.errors import RepositoryError

NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)


def db_row(id=1, score=0.75, metadata='{"likes": 12}'):
    return {
        "id": id,
        "app_id": 3,
        "content": "Shipped the new search service",
        "relevance_score": score,
        "source": "linkedin",
        "type": "post",
        "external_id": "urn:li:activity:1",
        "social_content_created_at": NOW - timedelta(days=2),
        "created_at": NOW,
        "metadata": metadata,
    }


class TestSocialContentRepository:
    """Unit tests for SocialContentRepository."""

    @pytest.fixture
    def mock_repo(self):
        """Create a repository with mocked pool."""
        repo = SocialContentRepository(connection_string="mock://")

        mock_pool = MagicMock()
        mock_ctx = MagicMock()
        mock_conn = AsyncMock()

        mock_ctx.__aenter__ = AsyncMock(return_value=mock_conn)
        mock_ctx.__aexit__ = AsyncMock(return_value=None)
        mock_pool.acquire.return_value = mock_ctx

        repo._pool = mock_pool
        return repo

    async def _conn(self, repo):
        return await repo._pool.acquire.return_value.__aenter__()

    @pytest.mark.asyncio
    async def test_filtered_query_with_embedding_uses_hybrid_score(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = [db_row()]

        results = await mock_repo.query_with_filters(
            app_id=3,
            query="search service",
            query_embedding=[0.1] * 1536,
            sources=["linkedin"],
            limit=60,
        )

        sql, *params = mock_conn.fetch.call_args[0]
        assert "ts_rank(sc.search_vector, plainto_tsquery('simple', $3))" in sql
        assert "sc.embedding <=> $4::vector" in sql
        assert "sc.source = ANY($2::text[])" in sql
        assert "ORDER BY relevance_score DESC, COALESCE(sc.social_content_created_at, sc.created_at) DESC" in sql
        assert "LIMIT $5" in sql
        assert params[0] == 3
        assert params[1] == ["linkedin"]
        assert params[-1] == 60

        assert len(results) == 1
        assert results[0].id == 1
        assert results[0].relevance_score == pytest.approx(0.75)
        assert results[0].metadata == {"likes": 12}
        assert results[0].external_id == "urn:li:activity:1"

    @pytest.mark.asyncio
    async def test_filtered_query_without_embedding_sorts_by_date(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = [db_row(score=1.0, metadata=None)]

        results = await mock_repo.query_with_filters(app_id=3, query="anything", sources=["github"])

        sql, *params = mock_conn.fetch.call_args[0]
        assert "<=>" not in sql
        assert "(1.0) AS relevance_score" in sql
        assert "ORDER BY COALESCE(sc.social_content_created_at, sc.created_at) DESC" in sql
        assert params == [3, ["github"], 30]
        assert results[0].relevance_score == 1.0
        assert results[0].metadata == {}

    @pytest.mark.asyncio
    async def test_partial_embedding_is_not_used(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = []

        await mock_repo.query_with_filters(app_id=3, query="q", query_embedding=[0.1, 0.2])

        sql = mock_conn.fetch.call_args[0][0]
        assert "<=>" not in sql

    @pytest.mark.asyncio
    async def test_date_window_keeps_undated_rows(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = []
        start, end = NOW - timedelta(days=7), NOW

        await mock_repo.query_with_filters(app_id=3, start_date=start, end_date=end)

        sql, *params = mock_conn.fetch.call_args[0]
        assert "sc.social_content_created_at IS NULL OR" in sql
        assert "sc.social_content_created_at >= $2 AND sc.social_content_created_at <= $3" in sql
        assert params[1:3] == [start, end]

    @pytest.mark.asyncio
    async def test_not_connected_raises(self):
        repo = SocialContentRepository(connection_string="mock://")

        with pytest.raises(RepositoryError):
            await repo.query_with_filters(app_id=3)

    @pytest.mark.asyncio
    async def test_driver_errors_are_wrapped(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.side_effect = asyncpg.exceptions.UndefinedTableError("relation does not exist")

        with pytest.raises(RepositoryError):
            await mock_repo.query_with_filters(app_id=3)

    @pytest.mark.asyncio
    async def test_fulltext_search(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = [db_row(score=0.12)]

        results = await mock_repo.fulltext_search("search", app_id=3, limit=5)

        sql, *params = mock_conn.fetch.call_args[0]
        assert "sc.search_vector @@ plainto_tsquery('simple', $1)" in sql
        assert params == ["search", 3, 5]
        assert results[0].relevance_score == pytest.approx(0.12)

    @pytest.mark.asyncio
    async def test_hybrid_search_without_embedding_falls_back_to_fulltext(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = []

        await mock_repo.hybrid_search("search", query_embedding=None, app_id=3)

        sql = mock_conn.fetch.call_args[0][0]
        assert "<=>" not in sql
        assert "@@ plainto_tsquery" in sql

    @pytest.mark.asyncio
    async def test_hybrid_search_with_embedding(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = [db_row()]

        results = await mock_repo.hybrid_search("search", query_embedding=[0.2] * 1536, app_id=3)

        sql, *params = mock_conn.fetch.call_args[0]
        assert "1 - (sc.embedding <=> $2::vector) > $3" in sql
        assert params[2] == 0.5
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_find_by_external_id(self, mock_repo):
        mock_conn = await self._conn(mock_repo)
        mock_conn.fetch.return_value = []

        assert await mock_repo.find_by_external_id("urn:li:activity:1", app_id=3) is None

        mock_conn.fetch.return_value = [db_row()]
        found = await mock_repo.find_by_external_id("urn:li:activity:1", app_id=3, source="linkedin")

        sql, *params = mock_conn.fetch.call_args[0]
        assert params == ["urn:li:activity:1", 3, "linkedin"]
        assert "LIMIT 1" in sql
        assert found.source == "linkedin"


class TestDatabaseSchema:
    """Unit tests for DatabaseSchema with a mocked connection."""

    @pytest.mark.asyncio
    async def test_initialize_runs_once(self, monkeypatch):
        from clone_retrieval.database import schema

        mock_conn = AsyncMock()
        connect = AsyncMock(return_value=mock_conn)
        monkeypatch.setattr(schema.asyncpg, "connect", connect)

        db_schema = schema.DatabaseSchema("mock://")
        await db_schema.initialize()
        await db_schema.initialize()

        connect.assert_awaited_once_with("mock://")
        sql = mock_conn.execute.call_args[0][0]
        assert "CREATE TABLE IF NOT EXISTS social_contents" in sql
        assert "USING hnsw (embedding vector_cosine_ops)" in sql
        mock_conn.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_drop_all(self, monkeypatch):
        from clone_retrieval.database import schema

        mock_conn = AsyncMock()
        monkeypatch.setattr(schema.asyncpg, "connect", AsyncMock(return_value=mock_conn))

        await schema.DatabaseSchema("mock://").drop_all()

        mock_conn.execute.assert_awaited_once_with("DROP TABLE IF EXISTS social_contents CASCADE;")
