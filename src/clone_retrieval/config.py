"""
Configuration

Loads and manages retrieval configuration from retrieval_config.yaml
"""

import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists
env_path = Path.cwd() / "setting" / ".env"
if env_path.exists():
    load_dotenv(env_path)


class DatabaseConfig(BaseModel):
    """Database connection configuration (social content store)."""
    host: str = "localhost"
    port: int = 5432
    name: str = "clone_retrieval"
    user: Optional[str] = None
    password: Optional[str] = None

    @property
    def connection_string(self) -> str:
        """Generate PostgreSQL connection string."""
        if self.user and self.password:
            return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"
        return f"postgresql://{self.host}:{self.port}/{self.name}"


class EmbeddingConfig(BaseModel):
    """Embedding model configuration."""
    model: str = "text-embedding-ada-002"
    dimension: int = 1536
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    enable_cache: bool = True
    max_cache_size: int = 1000


class ClassifierConfig(BaseModel):
    """Query classifier configuration."""
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_retries: int = 3


class VectorStoreConfig(BaseModel):
    """Chroma server configuration."""
    url: str = "http://localhost:8000"
    collection_id: str = "social_content"
    tenant: str = "default_tenant"
    database: str = "default_database"
    timeout_seconds: float = 30.0


class MemoryStoreConfig(BaseModel):
    """mem0 platform configuration."""
    url: str = "https://api.mem0.ai"
    api_key: Optional[str] = None
    timeout_seconds: float = 30.0


class RetrievalSettings(BaseModel):
    """
    Retrieval policy constants.

    These values are product decisions (ranking cap, boost windows,
    confidence thresholds); change them deliberately.
    """
    social_platforms: List[str] = Field(
        default_factory=lambda: [
            "linkedin", "twitter", "facebook", "instagram", "reddit", "medium", "github",
        ]
    )

    # Dedup fingerprint: first N chars + "_" + length
    dedup_prefix_length: int = 100

    # Re-ranking
    rerank_limit: int = 30
    max_relevance_score: float = 1.0
    recent_boost_days: int = 7
    recent_boost_factor: float = 1.5
    month_boost_days: int = 30
    month_boost_factor: float = 1.2

    # Per-source fetch sizing
    default_memory_results: int = 20
    default_content_results: int = 30
    vector_overfetch_factor: int = 3
    content_overfetch_factor: int = 2
    memory_min_score: float = 0.4

    # Confidence scoring
    high_relevance_score: float = 0.7
    strict_high_count: int = 3
    strict_high_avg: float = 0.6
    strict_medium_count: int = 1
    strict_medium_avg: float = 0.5
    moderate_high_count: int = 2
    moderate_high_avg: float = 0.5
    moderate_medium_size: int = 3


class RetrievalSystemConfig(BaseModel):
    """Main configuration model."""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    memory_store: MemoryStoreConfig = Field(default_factory=MemoryStoreConfig)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)


def _parse_database_url(db_url: str) -> dict:
    """Split a postgresql:// URL into DatabaseConfig fields."""
    parsed = urlparse(db_url)
    fields = {}
    if parsed.hostname:
        fields["host"] = parsed.hostname
    if parsed.port:
        fields["port"] = parsed.port
    if parsed.path and parsed.path != "/":
        fields["name"] = parsed.path.lstrip("/")
    if parsed.username:
        fields["user"] = parsed.username
    if parsed.password:
        fields["password"] = parsed.password
    return fields


def load_config(config_path: Optional[Path] = None) -> RetrievalSystemConfig:
    """
    Load configuration from YAML file.

    Falls back to environment variables and defaults.
    """
    if config_path is None:
        config_path = Path.cwd() / "config" / "retrieval_config.yaml"

    config_data = {}

    if config_path.exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    openai_key = os.getenv("OPENAI_API_KEY")
    if openai_key:
        config_data.setdefault("embedding", {})["api_key"] = openai_key
        config_data.setdefault("classifier", {})["api_key"] = openai_key

    if os.getenv("MEM0_API_KEY"):
        config_data.setdefault("memory_store", {})["api_key"] = os.getenv("MEM0_API_KEY")

    if os.getenv("CHROMA_URL"):
        config_data.setdefault("vector_store", {})["url"] = os.getenv("CHROMA_URL")

    db_url = os.getenv("DATABASE_URL")
    if db_url and db_url.startswith(("postgresql://", "postgres://")):
        config_data.setdefault("database", {}).update(_parse_database_url(db_url))

    return RetrievalSystemConfig(**config_data)
