"""
Base classes for LLM-backed collaborators.

This module defines abstract interfaces that allow supporting
multiple embedding providers and classifiers through the adapter pattern.
"""

from abc import ABC, abstractmethod
from typing import List

from clone_retrieval.errors import EmbeddingError
from clone_retrieval.models.query_analysis import QueryAnalysis
from clone_retrieval.models.store_records import EmbeddingResult


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Implementations must provide batch embedding functionality
    for efficient API usage.
    """

    @abstractmethod
    async def batch_embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in a single API call.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors in the same order as input texts

        Raises:
            EmbeddingError: If the embedding API fails
        """
        pass

    @abstractmethod
    def get_embedding_dimension(self) -> int:
        """Get the dimension of embeddings produced by this provider."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        pass

    async def close(self) -> None:
        """Release any client held by the provider."""
        return None


class EmbeddingGenerator(ABC):
    """Turns query text into a dense vector for semantic search."""

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        pass

    async def close(self) -> None:
        return None


class QueryClassifier(ABC):
    """
    Turns raw query text into a structured QueryAnalysis.

    Implementations may raise; the orchestrator treats any exception as a
    classification failure and switches to its fallback path.
    """

    @abstractmethod
    async def classify_query(self, query: str) -> QueryAnalysis:
        pass

    async def close(self) -> None:
        return None


__all__ = ["EmbeddingProvider", "EmbeddingGenerator", "QueryClassifier", "EmbeddingError"]
