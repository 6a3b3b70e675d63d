"""
Database Schema

Defines and creates the PostgreSQL schema for ingested social content,
with pgvector embeddings and a full-text search vector.
"""

import asyncpg

SCHEMA_SQL = """
-- Enable vector extension
CREATE EXTENSION IF NOT EXISTS vector;

-- Social content ingested from connected platforms
CREATE TABLE IF NOT EXISTS social_contents (
    id SERIAL PRIMARY KEY,
    app_id INTEGER NOT NULL,
    source VARCHAR(50) NOT NULL,                 -- linkedin, twitter, medium, ...
    type VARCHAR(50),                            -- post, comment, article, repository
    content TEXT NOT NULL,
    external_id TEXT,                            -- Platform-side identifier
    social_content_created_at TIMESTAMPTZ,       -- When it was published on the platform
    metadata JSONB DEFAULT '{}'::jsonb,
    embedding vector(1536),
    search_vector tsvector,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_social_contents_app
    ON social_contents(app_id);
CREATE INDEX IF NOT EXISTS idx_social_contents_app_source
    ON social_contents(app_id, source);
CREATE INDEX IF NOT EXISTS idx_social_contents_published
    ON social_contents(social_content_created_at DESC);
CREATE INDEX IF NOT EXISTS idx_social_contents_external
    ON social_contents(app_id, external_id);
CREATE INDEX IF NOT EXISTS idx_social_contents_embedding
    ON social_contents USING hnsw (embedding vector_cosine_ops);
CREATE INDEX IF NOT EXISTS idx_social_contents_search
    ON social_contents USING gin (search_vector);
"""


class DatabaseSchema:
    """
    Manages PostgreSQL schema creation for the content store.
    """

    def __init__(self, connection_string: str = None):
        self.connection_string = connection_string or "postgresql://localhost/clone_retrieval"
        self._initialized = False

    async def initialize(self) -> None:
        """
        Create all tables and indexes if they don't exist.
        """
        if self._initialized:
            return

        conn = await asyncpg.connect(self.connection_string)
        try:
            await conn.execute(SCHEMA_SQL)
        finally:
            await conn.close()

        self._initialized = True

    async def drop_all(self) -> None:
        """
        Drop all tables. USE WITH CAUTION - this destroys all data.
        """
        conn = await asyncpg.connect(self.connection_string)
        try:
            await conn.execute("DROP TABLE IF EXISTS social_contents CASCADE;")
        finally:
            await conn.close()
