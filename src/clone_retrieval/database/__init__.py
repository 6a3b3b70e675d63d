"""Database package - PostgreSQL schema and social content repository."""

from clone_retrieval.database.repository import SocialContentRepository
from clone_retrieval.database.schema import DatabaseSchema

__all__ = ["SocialContentRepository", "DatabaseSchema"]
