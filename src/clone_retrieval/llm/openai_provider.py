"""
OpenAI embedding provider implementation.
"""

from typing import List, Optional
from openai import AsyncOpenAI

from clone_retrieval.errors import EmbeddingError
from .base import EmbeddingProvider


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI embedding provider.

    Supports batch embedding natively through OpenAI's API.
    The relational store indexes 1536-dimension vectors, so the default
    model must stay at that width.
    """

    _DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "text-embedding-ada-002",
    ):
        """
        Initialize OpenAI embedding provider.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            base_url: Optional base URL for OpenAI-compatible APIs
            model: Embedding model name
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model

    async def batch_embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=texts,
            )
            return [item.embedding for item in response.data]
        except Exception as e:
            raise EmbeddingError(f"OpenAI embedding failed: {e}") from e

    def get_embedding_dimension(self) -> int:
        return self._DIMENSIONS.get(self.model, 1536)

    def get_model_name(self) -> str:
        return self.model

    async def close(self) -> None:
        await self.client.close()
